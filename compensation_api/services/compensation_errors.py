"""
Typed failures raised by the compensation engine and the catalog write path.

All of them are APIError subclasses so the errors blueprint renders them with
the standard failure envelope; the engine itself never catches them.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from compensation_api.common.errors import APIError


class CompensationError(APIError):
    code = "COMPENSATION_ERROR"
    status_code = 422

    def __init__(self, message: str, payload=None):
        super().__init__(type(self).code, message, type(self).status_code, payload)


class CyclicComponentDependency(CompensationError):
    code = "CYCLIC_COMPONENT_DEPENDENCY"

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        path = " -> ".join(self.cycle)
        super().__init__(f"Cyclic component dependency: {path}", payload={"cycle": self.cycle})


class UnresolvedComponentReference(CompensationError):
    code = "UNRESOLVED_COMPONENT_REFERENCE"

    def __init__(self, component_code: str, missing_code: str):
        self.component_code = component_code
        self.missing_code = missing_code
        super().__init__(
            f"Component {component_code} is based on {missing_code}, which is not in the active set",
            payload={"component": component_code, "based_on_code": missing_code},
        )


class InvalidComponentConfiguration(CompensationError):
    code = "INVALID_COMPONENT_CONFIGURATION"

    def __init__(self, message: str, errors: Iterable[str] | None = None, component_code: str | None = None):
        self.errors = list(errors or [])
        self.component_code = component_code
        payload = {"errors": self.errors}
        if component_code:
            payload["component"] = component_code
        super().__init__(message, payload=payload)


class NegativeWage(CompensationError):
    code = "NEGATIVE_WAGE"

    def __init__(self, wage):
        self.wage = wage
        super().__init__(f"Employee wage must not be negative (got {wage})", payload={"wage": str(wage)})


class InvalidTaxConfiguration(CompensationError):
    code = "INVALID_TAX_CONFIGURATION"


class ComponentEvaluationError(CompensationError):
    """Internal consistency failure: a base was not computed before its dependent."""
    code = "COMPONENT_EVALUATION_ERROR"
    status_code = 500
