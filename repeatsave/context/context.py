"""Finisher context: everything the finisher reads from the form runtime."""

from collections.abc import Mapping
from typing import Any

from repeatsave.context.definition import FormDefinition, FormElement
from repeatsave.context.variables import FinisherVariableProvider


class FinisherContext:
    """Request-scoped view of one form submission.

    Holds the submitted values, the form definition used for identifier
    lookup, and the variable provider shared by all finishers of the form.
    """

    def __init__(
        self,
        form_values: Mapping[str, Any],
        form_definition: FormDefinition | None = None,
        variable_provider: FinisherVariableProvider | None = None,
    ) -> None:
        """Initialize the context.

        Args:
            form_values: Flat map of element identifier to submitted value.
            form_definition: Definition of the form. If not provided, one is
                derived from the submitted values.
            variable_provider: Shared variable store. A new one is created if
                not provided.
        """
        self._form_values = dict(form_values)
        self.form_definition = (
            form_definition
            if form_definition is not None
            else FormDefinition.from_values(self._form_values)
        )
        self.variable_provider = (
            variable_provider if variable_provider is not None else FinisherVariableProvider()
        )

    def get_form_values(self) -> dict[str, Any]:
        return self._form_values

    def get_element_by_identifier(self, identifier: str) -> FormElement | None:
        return self.form_definition.get_element_by_identifier(identifier)
