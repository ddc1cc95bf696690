"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine
from sqlalchemy.engine import Engine

from repeatsave.storage import RecordingConnectionPool

ENTRY_TABLE = "tx_x_domain_model_entry"


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config at an empty temp directory."""
    home = tmp_path / "repeatsave-home"
    monkeypatch.setenv("REPEATSAVE_HOME", str(home))
    monkeypatch.delenv("REPEATSAVE_DATABASE_URL", raising=False)
    return home


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def recording_pool() -> RecordingConnectionPool:
    """A connection pool that records writes."""
    return RecordingConnectionPool()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """URL of a SQLite database with the entry table created."""
    url = f"sqlite:///{tmp_path / 'forms.db'}"
    engine = create_engine(url)
    metadata = MetaData()
    Table(
        ENTRY_TABLE,
        metadata,
        Column("uid", Integer, primary_key=True, autoincrement=True),
        Column("pid", Integer, nullable=True),
        Column("name", String(100), nullable=True),
        Column("nickname", String(100), nullable=True),
        Column("parent", Integer, nullable=True),
        Column("tags", String(255), nullable=True),
    )
    metadata.create_all(engine)
    engine.dispose()
    return url


@pytest.fixture
def engine(database_url: str) -> Iterator[Engine]:
    """Engine bound to the test database."""
    engine = create_engine(database_url)
    yield engine
    engine.dispose()
