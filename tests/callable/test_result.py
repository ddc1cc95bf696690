"""Tests for the CallableResult model."""

import pytest

from repeatsave.callable import CallableResult


class TestCallableResult:
    """Tests for CallableResult model."""

    def test_create_with_items(self) -> None:
        """Test creating CallableResult with items."""
        result = CallableResult(items=[{"kind": "insert"}])

        assert result.schema_version == "1.0"
        assert result.items == [{"kind": "insert"}]
        assert result.variables == {}
        assert result.stats == {}
        assert result.dry_run is False

    def test_items_required(self) -> None:
        with pytest.raises(ValueError):
            CallableResult()

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValueError):
            CallableResult(items=[], items_ref="artifact://bucket/key")

    def test_stats_must_match_items(self) -> None:
        with pytest.raises(ValueError, match="does not match"):
            CallableResult(items=[{"kind": "insert"}], stats={"inserts": 2})

    def test_stats_matching_items(self) -> None:
        result = CallableResult(
            items=[{"kind": "insert"}, {"kind": "update"}],
            stats={"inserts": 1, "updates": 1, "option_sets": 2},
        )
        assert result.stats["option_sets"] == 2

    def test_to_dict_minimal(self) -> None:
        assert CallableResult(items=[]).to_dict() == {"schema_version": "1.0", "items": []}

    def test_to_dict_full(self) -> None:
        result = CallableResult(
            items=[{"kind": "insert"}],
            variables={"insertedUids.0": 1},
            stats={"inserts": 1},
            dry_run=True,
        )

        assert result.to_dict() == {
            "schema_version": "1.0",
            "items": [{"kind": "insert"}],
            "variables": {"insertedUids.0": 1},
            "stats": {"inserts": 1},
            "dry_run": True,
        }
