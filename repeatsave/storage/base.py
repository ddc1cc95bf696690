"""Storage protocols and operation descriptors."""

from typing import Annotated, Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field


@runtime_checkable
class Connection(Protocol):
    """A connection able to write rows to a table."""

    def insert(self, table: str, row: dict[str, Any]) -> None:
        ...

    def update(self, table: str, row: dict[str, Any], where: dict[str, Any]) -> None:
        ...

    def last_insert_id(self, table: str) -> Any:
        """Return the identifier generated by the last insert into `table`."""
        ...


@runtime_checkable
class ConnectionPool(Protocol):
    """Hands out connections per table."""

    def get_connection_for_table(self, table: str) -> Connection:
        """Return a connection for `table`.

        Raises:
            StorageConnectionError: If no connection can be acquired.
        """
        ...


class InsertOperation(BaseModel):
    """An insert issued by the finisher."""

    kind: Literal["insert"] = "insert"
    table: str
    row: dict[str, Any]
    iteration: int
    repeat_index: int | None = None
    inserted_uid: int | None = None


class UpdateOperation(BaseModel):
    """An update issued by the finisher."""

    kind: Literal["update"] = "update"
    table: str
    row: dict[str, Any]
    where_clause: dict[str, Any]
    iteration: int
    repeat_index: int | None = None


Operation = Annotated[InsertOperation | UpdateOperation, Field(discriminator="kind")]
