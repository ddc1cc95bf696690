"""Global configuration for repeatsave.

Configuration lives in <home>/config.yaml, where home is $REPEATSAVE_HOME
or ~/.config/repeatsave. REPEATSAVE_DATABASE_URL overrides the database
URL from the file.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel

HOME_ENV = "REPEATSAVE_HOME"
DATABASE_URL_ENV = "REPEATSAVE_DATABASE_URL"


class GlobalConfig(BaseModel):
    """Settings read from config.yaml."""

    database_url: str | None = None
    finisher_identifier: str = "SaveRepeatableToDatabase"
    echo_sql: bool = False


def get_repeatsave_home() -> Path:
    env_home = os.environ.get(HOME_ENV)
    if env_home:
        return Path(env_home)
    return Path.home() / ".config" / "repeatsave"


def get_config_path() -> Path:
    return get_repeatsave_home() / "config.yaml"


def load_global_config(path: Path | None = None) -> GlobalConfig:
    """Load the global config.

    A missing file yields the defaults. The database URL from the
    environment wins over the one in the file.
    """
    config_path = path if path is not None else get_config_path()
    data: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

    config = GlobalConfig.model_validate(data)
    env_url = os.environ.get(DATABASE_URL_ENV)
    if env_url:
        config.database_url = env_url
    return config


def save_global_config(config: GlobalConfig, path: Path | None = None) -> Path:
    config_path = path if path is not None else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, sort_keys=False)
    return config_path
