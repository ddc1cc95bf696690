"""Submitted form values and their normalization to column values.

Form values are dynamically typed. A value may be a scalar, a list, a
FileReference, a date/datetime, or (for repeatable containers) a nested
collection of sub-group value maps. Before a value is written to a row it is
normalized to a scalar according to its shape and the element's config.
"""

import calendar
from collections.abc import Callable, Mapping
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from repeatsave.options.models import ElementConfig

UNIX_TIMESTAMP_FORMAT = "U"


class FileReference(BaseModel):
    """Reference to an uploaded file.

    Attributes:
        uid_local: Raw uid of the referenced file.
        combined_identifier: Storage-qualified identifier, e.g. "1:/user_upload/cv.pdf".
    """

    uid_local: int
    combined_identifier: str

    model_config = {"frozen": True}


def is_empty_value(value: Any) -> bool:
    """Check whether a resolved option value counts as empty.

    Mirrors the host framework's notion of emptiness: None, False, 0,
    the string "0", empty strings and empty collections are all empty.
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == "" or value == "0"
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def _ordinal_suffix(day: int) -> str:
    if day in (11, 12, 13):
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def _utc_offset(value: datetime, colon: bool) -> str:
    offset = value.utcoffset()
    if offset is None:
        offset = value.astimezone().utcoffset()
    minutes = int(offset.total_seconds()) // 60 if offset else 0
    sign = "-" if minutes < 0 else "+"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}{':' if colon else ''}{minutes:02d}"


def _twelve_hour(value: datetime) -> int:
    return value.hour % 12 or 12


# PHP date() format characters
_DATE_CHARACTERS: dict[str, Callable[[datetime], str]] = {
    "d": lambda v: f"{v.day:02d}",
    "D": lambda v: _WEEKDAYS[v.weekday()][:3],
    "j": lambda v: str(v.day),
    "l": lambda v: _WEEKDAYS[v.weekday()],
    "N": lambda v: str(v.isoweekday()),
    "S": lambda v: _ordinal_suffix(v.day),
    "w": lambda v: str(v.isoweekday() % 7),
    "z": lambda v: str(v.timetuple().tm_yday - 1),
    "W": lambda v: f"{v.isocalendar()[1]:02d}",
    "F": lambda v: _MONTHS[v.month - 1],
    "m": lambda v: f"{v.month:02d}",
    "M": lambda v: _MONTHS[v.month - 1][:3],
    "n": lambda v: str(v.month),
    "t": lambda v: str(calendar.monthrange(v.year, v.month)[1]),
    "L": lambda v: "1" if calendar.isleap(v.year) else "0",
    "o": lambda v: str(v.isocalendar()[0]),
    "Y": lambda v: str(v.year),
    "y": lambda v: f"{v.year % 100:02d}",
    "a": lambda v: "am" if v.hour < 12 else "pm",
    "A": lambda v: "AM" if v.hour < 12 else "PM",
    "g": lambda v: str(_twelve_hour(v)),
    "G": lambda v: str(v.hour),
    "h": lambda v: f"{_twelve_hour(v):02d}",
    "H": lambda v: f"{v.hour:02d}",
    "i": lambda v: f"{v.minute:02d}",
    "s": lambda v: f"{v.second:02d}",
    "u": lambda v: f"{v.microsecond:06d}",
    "v": lambda v: f"{v.microsecond // 1000:03d}",
    "O": lambda v: _utc_offset(v, colon=False),
    "P": lambda v: _utc_offset(v, colon=True),
    "U": lambda v: str(int(v.timestamp())),
    "c": lambda v: v.strftime("%Y-%m-%dT%H:%M:%S") + _utc_offset(v, colon=True),
    "r": lambda v: (
        f"{_WEEKDAYS[v.weekday()][:3]}, {v.day:02d} {_MONTHS[v.month - 1][:3]} {v.year} "
        f"{v.hour:02d}:{v.minute:02d}:{v.second:02d} {_utc_offset(v, colon=False)}"
    ),
}


def format_date(value: date, date_format: str = UNIX_TIMESTAMP_FORMAT) -> str:
    """Format a date or datetime for storage.

    Args:
        value: The date or datetime to format. A date is taken as midnight
            local time.
        date_format: A PHP date() format such as "U" (Unix timestamp) or
            "Y-m-d H:i", where a backslash escapes the next character. A
            format containing "%" is a strftime pattern instead.

    Returns:
        The formatted value as a string.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if "%" in date_format:
        return value.strftime(date_format)

    parts: list[str] = []
    escaped = False
    for char in date_format:
        if escaped:
            parts.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char in _DATE_CHARACTERS:
            parts.append(_DATE_CHARACTERS[char](value))
        else:
            parts.append(char)
    return "".join(parts)


def _join_item(value: Any) -> str:
    # string conversion as done when imploding arrays
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    return str(value)


def normalize_value(value: Any, element_config: "ElementConfig") -> Any:
    """Normalize an element value to the scalar written to the row.

    Shapes are checked in priority order: file reference, list or mapping
    (values comma-joined), date, then anything else is returned unchanged.
    """
    if isinstance(value, FileReference):
        if element_config.save_file_identifier_instead_of_uid:
            return value.combined_identifier
        return value.uid_local
    if isinstance(value, Mapping):
        return ",".join(_join_item(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return ",".join(_join_item(v) for v in value)
    if isinstance(value, date):
        return format_date(value, element_config.date_format)
    return value


def decode_value(value: Any) -> Any:
    """Decode a JSON value into a form value.

    Tagged objects are turned into their runtime types:
        {"__type": "file", "uid_local": 3, "combined_identifier": "1:/a.pdf"}
        {"__type": "datetime", "value": "2024-05-01T10:00:00+00:00"}
        {"__type": "date", "value": "2024-05-01"}

    Lists and plain objects are decoded recursively.
    """
    if isinstance(value, Mapping):
        kind = value.get("__type")
        if kind == "file":
            return FileReference(
                uid_local=value["uid_local"],
                combined_identifier=value["combined_identifier"],
            )
        if kind == "datetime":
            return datetime.fromisoformat(value["value"])
        if kind == "date":
            return date.fromisoformat(value["value"])
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def decode_values(values: Mapping[str, Any]) -> dict[str, Any]:
    """Decode a whole submitted value map."""
    return {identifier: decode_value(value) for identifier, value in values.items()}
