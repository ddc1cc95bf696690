"""Pydantic models for finisher option sets."""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from repeatsave.errors import ConfigurationError
from repeatsave.values import UNIX_TIMESTAMP_FORMAT

DEFAULT_OPTIONS: dict[str, Any] = {
    "table": None,
    "mode": "insert",
    "whereClause": {},
    "elements": {},
    "databaseColumnMappings": {},
    "repeat": False,
}


class ElementConfig(BaseModel):
    """Per-element rules for mapping a submitted value onto a column.

    `dateFormat` uses PHP date() characters ("U", "Y-m-d H:i", ...). A format
    containing "%" is taken as a strftime pattern.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    map_on_database_column: str | None = Field(default=None, alias="mapOnDatabaseColumn")
    skip_if_value_is_empty: bool = Field(default=False, alias="skipIfValueIsEmpty")
    save_file_identifier_instead_of_uid: bool = Field(
        default=False, alias="saveFileIdentifierInsteadOfUid"
    )
    date_format: str = Field(default=UNIX_TIMESTAMP_FORMAT, alias="dateFormat")


class ColumnMappingConfig(BaseModel):
    """Static or templated value for a column, independent of form elements."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    value: Any = None
    skip_if_value_is_empty: bool = Field(default=False, alias="skipIfValueIsEmpty")


class FinisherOptions(BaseModel):
    """A single option set: one table and how to fill it."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    table: str
    mode: Literal["insert", "update"] = "insert"
    where_clause: dict[str, Any] = Field(default_factory=dict, alias="whereClause")
    elements: dict[str, ElementConfig] = Field(default_factory=dict)
    database_column_mappings: dict[str, ColumnMappingConfig] = Field(
        default_factory=dict, alias="databaseColumnMappings"
    )
    repeat: str = Field(default="", json_schema_extra={"type": ["string", "boolean", "null"]})

    @field_validator("table")
    @classmethod
    def table_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("table must not be empty")
        return v

    @field_validator("repeat", mode="before")
    @classmethod
    def repeat_as_string(cls, v: Any) -> str:
        # false/null mean "no repetition"
        return v if isinstance(v, str) else ""

    @field_validator("where_clause", "elements", "database_column_mappings", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def is_update(self) -> bool:
        return self.mode == "update"

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "FinisherOptions":
        """Validate a raw option set.

        Raises:
            ConfigurationError: If the option set does not match the model.
        """
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid finisher options: {e}") from e


def parse_option_sets(raw: Any) -> list[dict[str, Any]]:
    """Split finisher options into an ordered list of option sets.

    A mapping with a "table" key is a single option set. A list, or a
    mapping without "table", holds several option sets in order.

    Raises:
        ConfigurationError: If the options are neither a mapping nor a list,
            or an entry is not a mapping.
    """
    if isinstance(raw, Mapping):
        if "table" in raw:
            return [dict(raw)]
        entries = list(raw.values())
    elif isinstance(raw, list):
        entries = raw
    else:
        raise ConfigurationError(
            f"Finisher options must be a mapping or a list, got {type(raw).__name__}"
        )

    option_sets: list[dict[str, Any]] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise ConfigurationError(
                f"Option set {index} must be a mapping, got {type(entry).__name__}"
            )
        option_sets.append(dict(entry))
    return option_sets
