"""Shared variable store used to hand results to later finishers."""

from typing import Any


class FinisherVariableProvider:
    """Key/value store scoped by finisher identifier.

    Keys are dotted paths such as "insertedUids.0.1". Entries keep their
    insertion order so readers see results in processing order.
    """

    def __init__(self) -> None:
        self._store: dict[str, dict[str, Any]] = {}

    def add(self, namespace: str, key: str, value: Any) -> None:
        self._store.setdefault(namespace, {})[key] = value

    def exists(self, namespace: str, path: str) -> bool:
        if path in self._store.get(namespace, {}):
            return True
        prefix = f"{path}."
        return any(key.startswith(prefix) for key in self._store.get(namespace, {}))

    def get(self, namespace: str, path: str, default: Any = None) -> Any:
        """Get a value by dotted path.

        A path that is a prefix of stored keys returns the nested entries
        as a dict, e.g. get(ns, "insertedUids") -> {"0": 12, "1": 13}.
        """
        entries = self._store.get(namespace, {})
        if path in entries:
            return entries[path]

        prefix = f"{path}."
        nested: dict[str, Any] = {}
        for key, value in entries.items():
            if key.startswith(prefix):
                nested[key[len(prefix):]] = value
        return nested if nested else default

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Return a copy of all stored entries, keyed by namespace."""
        return {namespace: dict(entries) for namespace, entries in self._store.items()}
