"""Finisher option sets and option resolution."""

from repeatsave.options.models import (
    DEFAULT_OPTIONS,
    ColumnMappingConfig,
    ElementConfig,
    FinisherOptions,
    parse_option_sets,
)
from repeatsave.options.resolver import OptionResolver, TemplateOptionResolver

__all__ = [
    "DEFAULT_OPTIONS",
    "ColumnMappingConfig",
    "ElementConfig",
    "FinisherOptions",
    "OptionResolver",
    "TemplateOptionResolver",
    "parse_option_sets",
]
