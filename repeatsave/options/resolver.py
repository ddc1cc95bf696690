"""Option resolution.

Options are read by dotted path against the active option set. String
values may contain {...} placeholders referring to submitted form values,
to variables stored by earlier finishers, or to the current timestamp.
"""

import re
import time
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from repeatsave.context import FinisherContext
from repeatsave.options.models import DEFAULT_OPTIONS

CURRENT_TIMESTAMP = "__currentTimestamp"

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")
_MISSING = object()


@runtime_checkable
class OptionResolver(Protocol):
    """Resolves a dotted option path against an option set."""

    def parse_option(
        self,
        options: Mapping[str, Any],
        path: str,
        context: FinisherContext,
    ) -> Any:
        """Return the resolved value of the option at `path`."""
        ...


def lookup_path(data: Any, path: str) -> Any:
    """Walk a dotted path through nested mappings and lists.

    Returns a private sentinel when the path does not exist.
    """
    node = data
    for segment in path.split("."):
        if isinstance(node, Mapping):
            if segment in node:
                node = node[segment]
            elif segment.isdigit() and int(segment) in node:
                node = node[int(segment)]
            else:
                return _MISSING
        elif isinstance(node, list) and segment.isdigit() and int(segment) < len(node):
            node = node[int(segment)]
        else:
            return _MISSING
    return node


class TemplateOptionResolver:
    """Default option resolver.

    Placeholder forms:
        {__currentTimestamp}          current Unix time
        {<elementIdentifier>}         submitted value of the element
        {<namespace>.<key.path>}      value stored in the variable provider

    An option consisting of exactly one placeholder resolves to the raw
    referenced value. Placeholders embedded in longer strings are replaced
    by their string form. Unresolvable placeholders are left as written.
    """

    def __init__(
        self,
        default_options: Mapping[str, Any] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.default_options = dict(DEFAULT_OPTIONS if default_options is None else default_options)
        self.clock = clock

    def parse_option(
        self,
        options: Mapping[str, Any],
        path: str,
        context: FinisherContext,
    ) -> Any:
        value = lookup_path(options, path)
        if value is _MISSING or value is None:
            value = lookup_path(self.default_options, path)
            if value is _MISSING:
                return None
        return self.substitute(value, context)

    def substitute(self, value: Any, context: FinisherContext) -> Any:
        """Replace placeholders in a value, recursing into lists and mappings."""
        if isinstance(value, str):
            return self._substitute_string(value, context)
        if isinstance(value, Mapping):
            return {k: self.substitute(v, context) for k, v in value.items()}
        if isinstance(value, list):
            return [self.substitute(v, context) for v in value]
        return value

    def _substitute_string(self, value: str, context: FinisherContext) -> Any:
        whole = _PLACEHOLDER.fullmatch(value)
        if whole:
            resolved = self.resolve_reference(whole.group(1), context)
            return value if resolved is _MISSING else resolved

        def replace(match: re.Match[str]) -> str:
            resolved = self.resolve_reference(match.group(1), context)
            if resolved is _MISSING:
                return match.group(0)
            if isinstance(resolved, (list, tuple)):
                return ",".join(str(v) for v in resolved)
            return "" if resolved is None else str(resolved)

        return _PLACEHOLDER.sub(replace, value)

    def resolve_reference(self, reference: str, context: FinisherContext) -> Any:
        """Resolve the content of one placeholder.

        Returns a private sentinel when nothing matches.
        """
        reference = reference.strip()
        if reference == CURRENT_TIMESTAMP:
            return int(self.clock())

        values = context.get_form_values()
        if reference in values:
            return values[reference]
        value = lookup_path(values, reference)
        if value is not _MISSING:
            return value

        namespace, _, key = reference.partition(".")
        provider = context.variable_provider
        if key and provider.exists(namespace, key):
            return provider.get(namespace, key)

        return _MISSING
