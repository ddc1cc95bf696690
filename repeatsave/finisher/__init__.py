"""The save-to-database finisher."""

from repeatsave.finisher.finisher import (
    DEFAULT_FINISHER_IDENTIFIER,
    FinisherResult,
    SaveRepeatableToDatabaseFinisher,
)

__all__ = [
    "DEFAULT_FINISHER_IDENTIFIER",
    "FinisherResult",
    "SaveRepeatableToDatabaseFinisher",
]
