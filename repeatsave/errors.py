"""Exceptions raised by the finisher."""


class FinisherError(Exception):
    """Base class for errors raised while running the finisher.

    Attributes:
        code: Optional numeric code identifying the failure.
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        self.code = code
        super().__init__(message)


class ConfigurationError(FinisherError):
    """Raised when an option set is inconsistent.

    Always raised before any storage mutation happens.
    """

    pass


class StorageConnectionError(FinisherError):
    """Raised when no connection can be acquired for a table."""

    def __init__(self, table: str, reason: str) -> None:
        self.table = table
        super().__init__(f"No connection available for table {table!r}: {reason}")
