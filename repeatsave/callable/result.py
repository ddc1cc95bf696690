"""CallableResult model for the repeatsave callable protocol."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, model_validator


class CallableResult(BaseModel):
    """Result returned by the repeatsave execute() interface.

    Attributes:
        schema_version: Version of the CallableResult schema.
        items: Operation descriptors, one per insert or update issued.
        variables: Entries the finisher wrote to its variable namespace,
            e.g. {"insertedUids.0": 12, "countInserts.0": 2}.
        stats: Processing statistics.
        dry_run: True when nothing was written to a database.
    """

    schema_version: str = "1.0"
    items: list[dict[str, Any]]
    variables: dict[str, Any] = {}
    stats: dict[str, int] = {}
    dry_run: bool = False

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def validate_stats_match_items(self) -> CallableResult:
        """Ensure the insert/update counts agree with the items."""
        for kind, stat in (("insert", "inserts"), ("update", "updates")):
            if stat in self.stats:
                actual = sum(1 for item in self.items if item.get("kind") == kind)
                if self.stats[stat] != actual:
                    raise ValueError(
                        f"stats[{stat!r}]={self.stats[stat]} does not match {actual} {kind} items"
                    )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, leaving out empty optional parts."""
        result: dict[str, Any] = {
            "schema_version": self.schema_version,
            "items": self.items,
        }
        if self.variables:
            result["variables"] = self.variables
        if self.stats:
            result["stats"] = self.stats
        if self.dry_run:
            result["dry_run"] = True
        return result
