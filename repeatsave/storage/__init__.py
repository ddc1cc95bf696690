"""Storage connections used by the finisher."""

from repeatsave.storage.base import (
    Connection,
    ConnectionPool,
    InsertOperation,
    Operation,
    UpdateOperation,
)
from repeatsave.storage.recording import RecordingConnectionPool
from repeatsave.storage.database import SqlAlchemyConnectionPool

__all__ = [
    "Connection",
    "ConnectionPool",
    "InsertOperation",
    "Operation",
    "RecordingConnectionPool",
    "SqlAlchemyConnectionPool",
    "UpdateOperation",
]
