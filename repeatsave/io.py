"""Input utilities for finisher option files."""

import json
from pathlib import Path
from typing import Any

import yaml


def read_options(path: Path | str) -> Any:
    """Read finisher options from a YAML or JSON file.

    The file may hold the options directly, or under a top-level "options"
    key as in a form definition's finisher block.
    """
    path = Path(path)
    with open(path) as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict) and "options" in data and "table" not in data:
        return data["options"]
    return data
