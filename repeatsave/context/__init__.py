"""Form runtime context consumed by the finisher."""

from repeatsave.context.context import FinisherContext
from repeatsave.context.definition import FormDefinition, FormElement, wildcard_identifier
from repeatsave.context.variables import FinisherVariableProvider

__all__ = [
    "FinisherContext",
    "FinisherVariableProvider",
    "FormDefinition",
    "FormElement",
    "wildcard_identifier",
]
