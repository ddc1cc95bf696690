"""Connection pool that records writes instead of executing them.

Used for dry runs and tests. Inserted identifiers are handed out
sequentially per pool, starting at `first_uid`.
"""

from typing import Any


class RecordedWrite:
    """A single recorded write."""

    def __init__(
        self,
        kind: str,
        table: str,
        row: dict[str, Any],
        where: dict[str, Any] | None = None,
    ) -> None:
        self.kind = kind
        self.table = table
        self.row = row
        self.where = where

    def __repr__(self) -> str:
        return f"RecordedWrite({self.kind!r}, {self.table!r}, {self.row!r}, where={self.where!r})"


class RecordingConnection:
    """Connection that appends every write to its pool's log."""

    def __init__(self, pool: "RecordingConnectionPool") -> None:
        self._pool = pool
        self._last_insert_ids: dict[str, int] = {}

    def insert(self, table: str, row: dict[str, Any]) -> None:
        self._pool.writes.append(RecordedWrite("insert", table, dict(row)))
        self._last_insert_ids[table] = self._pool.next_uid()

    def update(self, table: str, row: dict[str, Any], where: dict[str, Any]) -> None:
        self._pool.writes.append(RecordedWrite("update", table, dict(row), dict(where)))

    def last_insert_id(self, table: str) -> int:
        return self._last_insert_ids.get(table, 0)


class RecordingConnectionPool:
    """Pool handing out recording connections."""

    def __init__(self, first_uid: int = 1) -> None:
        self.writes: list[RecordedWrite] = []
        self.tables_requested: list[str] = []
        self._next_uid = first_uid

    def next_uid(self) -> int:
        uid = self._next_uid
        self._next_uid += 1
        return uid

    def get_connection_for_table(self, table: str) -> RecordingConnection:
        self.tables_requested.append(table)
        return RecordingConnection(self)
