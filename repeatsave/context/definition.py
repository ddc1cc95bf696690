"""Form definition used to check that submitted identifiers are real elements."""

import re
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

_INDEX_SEGMENT = re.compile(r"(?<=\.)\d+(?=\.|$)|^\d+(?=\.|$)")


def wildcard_identifier(identifier: str) -> str:
    """Replace numeric path segments with "*" (children.2.name -> children.*.name)."""
    return _INDEX_SEGMENT.sub("*", identifier)


class FormElement(BaseModel):
    """A single element of a form definition."""

    identifier: str
    type: str | None = None
    label: str | None = None


class FormDefinition(BaseModel):
    """Structural definition of a form.

    Elements inside repeatable containers may be declared once with "*" in
    place of the sub-group index, e.g. "children.*.nickname".
    """

    identifier: str = "form"
    elements: list[FormElement] = Field(default_factory=list)

    _by_identifier: dict[str, FormElement] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._by_identifier = {element.identifier: element for element in self.elements}

    @classmethod
    def from_identifiers(cls, identifiers: Iterable[str], identifier: str = "form") -> "FormDefinition":
        return cls(
            identifier=identifier,
            elements=[FormElement(identifier=i) for i in identifiers],
        )

    @classmethod
    def from_values(cls, values: Mapping[str, Any], identifier: str = "form") -> "FormDefinition":
        """Build a definition declaring every identifier present in submitted values.

        Repeatable containers (lists of mappings, or mappings of mappings) are
        walked so their sub-group elements are declared with their index.
        """
        identifiers: list[str] = []

        def walk(prefix: str, node: Mapping[str, Any]) -> None:
            for key, value in node.items():
                full = f"{prefix}{key}"
                identifiers.append(full)
                groups: Iterable[tuple[Any, Any]] = ()
                if isinstance(value, list):
                    groups = enumerate(value)
                elif isinstance(value, Mapping):
                    groups = value.items()
                for index, group in groups:
                    if isinstance(group, Mapping):
                        walk(f"{full}.{index}.", group)

        walk("", values)
        return cls.from_identifiers(identifiers, identifier=identifier)

    def get_element_by_identifier(self, identifier: str) -> FormElement | None:
        """Get an element by identifier, or None if the form has no such element."""
        element = self._by_identifier.get(identifier)
        if element is None:
            element = self._by_identifier.get(wildcard_identifier(identifier))
        return element

    @property
    def identifiers(self) -> list[str]:
        return list(self._by_identifier.keys())
