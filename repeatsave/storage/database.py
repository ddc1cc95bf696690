"""SQLAlchemy-backed storage.

Tables are reflected from the database on first use. Every insert and
update runs in its own transaction; errors raised by SQLAlchemy while
writing propagate unchanged.
"""

import logging
from typing import Any

from sqlalchemy import MetaData, Table, and_, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchColumnError, NoSuchTableError, SQLAlchemyError

from repeatsave.errors import StorageConnectionError

logger = logging.getLogger(__name__)


class SqlAlchemyConnection:
    """Connection writing to one SQLAlchemy engine."""

    def __init__(self, engine: Engine, metadata: MetaData) -> None:
        self.engine = engine
        self.metadata = metadata
        self._last_insert_ids: dict[str, Any] = {}

    def _table(self, name: str) -> Table:
        if name in self.metadata.tables:
            return self.metadata.tables[name]
        return Table(name, self.metadata, autoload_with=self.engine)

    def insert(self, table: str, row: dict[str, Any]) -> None:
        target = self._table(table)
        with self.engine.begin() as conn:
            result = conn.execute(target.insert().values(**row))
            primary_key = result.inserted_primary_key
        self._last_insert_ids[table] = primary_key[0] if primary_key else None

    def update(self, table: str, row: dict[str, Any], where: dict[str, Any]) -> None:
        target = self._table(table)
        conditions = []
        for column, value in where.items():
            if column not in target.c:
                raise NoSuchColumnError(f"Table {table!r} has no column {column!r}")
            conditions.append(target.c[column] == value)
        statement = target.update().where(and_(*conditions)).values(**row)
        with self.engine.begin() as conn:
            result = conn.execute(statement)
        logger.debug("Updated %d row(s) in %s", result.rowcount, table)

    def last_insert_id(self, table: str) -> Any:
        return self._last_insert_ids.get(table)


class SqlAlchemyConnectionPool:
    """Hands out connections for tables of a single database.

    Args:
        engine: Engine to use. Mutually exclusive with `database_url`.
        database_url: URL to create an engine from.
        echo: Log SQL statements (only used with `database_url`).
    """

    def __init__(
        self,
        engine: Engine | None = None,
        database_url: str | None = None,
        echo: bool = False,
    ) -> None:
        if engine is None:
            if not database_url:
                raise ValueError("Either engine or database_url is required")
            engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
        self.engine = engine
        self.metadata = MetaData()

    def get_connection_for_table(self, table: str) -> SqlAlchemyConnection:
        connection = SqlAlchemyConnection(self.engine, self.metadata)
        try:
            connection._table(table)
        except NoSuchTableError as e:
            logger.error("Table %s does not exist", table)
            raise StorageConnectionError(table, "table does not exist") from e
        except SQLAlchemyError as e:
            logger.error("Could not connect for table %s: %s", table, e)
            raise StorageConnectionError(table, str(e)) from e
        return connection
