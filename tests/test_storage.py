"""Tests for the storage connections."""

import pytest
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from repeatsave.context import FinisherContext
from repeatsave.errors import StorageConnectionError
from repeatsave.finisher import SaveRepeatableToDatabaseFinisher
from repeatsave.storage import (
    Connection,
    ConnectionPool,
    RecordingConnectionPool,
    SqlAlchemyConnectionPool,
)

ENTRY_TABLE = "tx_x_domain_model_entry"


def fetch_rows(engine: Engine) -> list[dict]:
    with engine.connect() as conn:
        result = conn.execute(text(f"SELECT * FROM {ENTRY_TABLE} ORDER BY uid"))
        return [dict(row._mapping) for row in result]


class TestSqlAlchemyConnectionPool:
    """Tests for SqlAlchemyConnectionPool against SQLite."""

    def test_implements_protocols(self, engine: Engine) -> None:
        pool = SqlAlchemyConnectionPool(engine=engine)

        assert isinstance(pool, ConnectionPool)
        assert isinstance(pool.get_connection_for_table(ENTRY_TABLE), Connection)

    def test_requires_engine_or_url(self) -> None:
        with pytest.raises(ValueError):
            SqlAlchemyConnectionPool()

    def test_insert_and_last_insert_id(self, engine: Engine) -> None:
        connection = SqlAlchemyConnectionPool(engine=engine).get_connection_for_table(ENTRY_TABLE)

        connection.insert(ENTRY_TABLE, {"name": "Alice"})
        first = connection.last_insert_id(ENTRY_TABLE)
        connection.insert(ENTRY_TABLE, {"name": "Bob"})
        second = connection.last_insert_id(ENTRY_TABLE)

        assert (first, second) == (1, 2)
        assert [r["name"] for r in fetch_rows(engine)] == ["Alice", "Bob"]

    def test_update(self, engine: Engine) -> None:
        connection = SqlAlchemyConnectionPool(engine=engine).get_connection_for_table(ENTRY_TABLE)
        connection.insert(ENTRY_TABLE, {"name": "Alice", "pid": 1})
        connection.insert(ENTRY_TABLE, {"name": "Bob", "pid": 1})

        connection.update(ENTRY_TABLE, {"nickname": "Al"}, {"name": "Alice", "pid": 1})

        rows = fetch_rows(engine)
        assert rows[0]["nickname"] == "Al"
        assert rows[1]["nickname"] is None

    def test_missing_table_raises(self, engine: Engine) -> None:
        pool = SqlAlchemyConnectionPool(engine=engine)

        with pytest.raises(StorageConnectionError, match="tx_missing") as exc_info:
            pool.get_connection_for_table("tx_missing")

        assert exc_info.value.table == "tx_missing"

    def test_unknown_column_error_propagates(self, engine: Engine) -> None:
        connection = SqlAlchemyConnectionPool(engine=engine).get_connection_for_table(ENTRY_TABLE)

        with pytest.raises(SQLAlchemyError):
            connection.insert(ENTRY_TABLE, {"no_such_column": 1})

    def test_unknown_where_column_raises_sqlalchemy_error(self, engine: Engine) -> None:
        connection = SqlAlchemyConnectionPool(engine=engine).get_connection_for_table(ENTRY_TABLE)

        with pytest.raises(SQLAlchemyError, match="nope"):
            connection.update(ENTRY_TABLE, {"name": "Bob"}, {"nope": 1})

    def test_finisher_end_to_end(self, engine: Engine) -> None:
        pool = SqlAlchemyConnectionPool(engine=engine)
        options = [
            {"table": ENTRY_TABLE, "elements": {"name": {"mapOnDatabaseColumn": "name"}}},
            {
                "table": ENTRY_TABLE,
                "repeat": "children",
                "databaseColumnMappings": {
                    "parent": {"value": "{SaveRepeatableToDatabase.insertedUids.0}"}
                },
                "elements": {
                    "nickname": {"mapOnDatabaseColumn": "nickname"},
                    "tags": {"mapOnDatabaseColumn": "tags"},
                },
            },
        ]
        context = FinisherContext(
            {
                "name": "Alice",
                "children": [
                    {"nickname": "A", "tags": ["x", "y"]},
                    {"nickname": "B", "tags": []},
                ],
            }
        )

        SaveRepeatableToDatabaseFinisher(options, pool).execute(context)

        rows = fetch_rows(engine)
        assert [(r["uid"], r["name"], r["nickname"], r["parent"], r["tags"]) for r in rows] == [
            (1, "Alice", None, None, None),
            (2, None, "A", 1, "x,y"),
            (3, None, "B", 1, ""),
        ]
        assert context.variable_provider.get("SaveRepeatableToDatabase", "insertedUids.1.1") == 3


class TestRecordingConnectionPool:
    """Tests for RecordingConnectionPool."""

    def test_records_writes_and_hands_out_uids(self) -> None:
        pool = RecordingConnectionPool(first_uid=10)
        connection = pool.get_connection_for_table("a")

        connection.insert("a", {"x": 1})
        assert connection.last_insert_id("a") == 10
        connection.update("a", {"x": 2}, {"uid": 10})
        connection.insert("a", {"x": 3})

        assert connection.last_insert_id("a") == 11
        assert [w.kind for w in pool.writes] == ["insert", "update", "insert"]
        assert pool.writes[1].where == {"uid": 10}

    def test_last_insert_id_without_insert(self) -> None:
        connection = RecordingConnectionPool().get_connection_for_table("a")
        assert connection.last_insert_id("a") == 0
