"""Tests for global configuration and file helpers."""

import json
from pathlib import Path

import pytest

from repeatsave.config import GlobalConfig, load_global_config, save_global_config
from repeatsave.io import read_options


class TestGlobalConfig:
    """Tests for load_global_config / save_global_config."""

    def test_defaults_without_file(self) -> None:
        config = load_global_config()

        assert config.database_url is None
        assert config.finisher_identifier == "SaveRepeatableToDatabase"
        assert config.echo_sql is False

    def test_round_trip(self, isolated_home: Path) -> None:
        path = save_global_config(GlobalConfig(database_url="sqlite:///x.db", echo_sql=True))

        assert path == isolated_home / "config.yaml"
        config = load_global_config()
        assert config.database_url == "sqlite:///x.db"
        assert config.echo_sql is True

    def test_environment_overrides_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        save_global_config(GlobalConfig(database_url="sqlite:///file.db"))
        monkeypatch.setenv("REPEATSAVE_DATABASE_URL", "sqlite:///env.db")

        assert load_global_config().database_url == "sqlite:///env.db"


class TestIo:
    """Tests for option file helpers."""

    def test_read_yaml_options(self, tmp_path: Path) -> None:
        path = tmp_path / "options.yaml"
        path.write_text("table: tx_entry\nmode: insert\n")

        assert read_options(path) == {"table": "tx_entry", "mode": "insert"}

    def test_read_options_under_key(self, tmp_path: Path) -> None:
        path = tmp_path / "finisher.json"
        path.write_text(json.dumps({"identifier": "Save", "options": [{"table": "a"}]}))

        assert read_options(path) == [{"table": "a"}]
