"""
Immutable snapshot types for the salary component catalog.

ORM rows (SalaryComponent / EmployeeSalary) are copied into these frozen
dataclasses once per calculation, so nothing edited in the session while a
breakdown is being computed can leak into it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from .compensation_errors import InvalidComponentConfiguration
from .money import CENT, to_decimal

EARNING = "EARNING"
DEDUCTION = "DEDUCTION"
KINDS = (EARNING, DEDUCTION)

FIXED = "FIXED"
PERCENTAGE = "PERCENTAGE"

STANDARD = "STANDARD"
TAX_SLAB = "TAX_SLAB"
CALC_RULES = (STANDARD, TAX_SLAB)

MAX_COMPONENTS = 200
_LAST = 10 ** 9  # sort position for components without a display order

CODE_RE = re.compile(r"^[A-Z][A-Z0-9_]{0,49}$")


@dataclass(frozen=True)
class Valuation:
    mode: str
    amount: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    of_code: Optional[str] = None

    @classmethod
    def fixed(cls, amount) -> "Valuation":
        return cls(FIXED, amount=to_decimal(amount))

    @classmethod
    def percentage(cls, rate, of_code: Optional[str] = None) -> "Valuation":
        return cls(PERCENTAGE, rate=to_decimal(rate), of_code=(of_code or None))

    @property
    def is_percentage(self) -> bool:
        return self.mode == PERCENTAGE

    @property
    def base_code(self) -> Optional[str]:
        return self.of_code if self.is_percentage else None


@dataclass(frozen=True)
class ComponentDefinition:
    code: str
    name: str
    kind: str
    valuation: Valuation
    max_limit: Optional[Decimal] = None
    is_taxable: bool = True
    is_mandatory: bool = False
    is_active: bool = True
    display_order: Optional[int] = None
    calc_rule: str = STANDARD
    is_employer_contribution: bool = False
    description: Optional[str] = None
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None

    @property
    def is_earning(self) -> bool:
        return self.kind == EARNING

    @property
    def is_tax_component(self) -> bool:
        return self.calc_rule == TAX_SLAB

    @property
    def is_employer_side(self) -> bool:
        # explicit flag, or the PF_EMPLOYER-style naming convention
        return self.kind == DEDUCTION and (self.is_employer_contribution or "EMPLOYER" in self.code)

    def is_effective_on(self, on_date: date) -> bool:
        if self.effective_from and self.effective_from > on_date:
            return False
        if self.effective_to and self.effective_to < on_date:
            return False
        return True

    def sort_key(self):
        return (self.display_order if self.display_order is not None else _LAST, self.code)

    @classmethod
    def from_model(cls, row) -> "ComponentDefinition":
        """Works on SalaryComponent rows or anything carrying the same attribute names."""
        value_type = (row.value_type or "fixed").upper()
        if value_type == PERCENTAGE:
            valuation = Valuation.percentage(row.percentage_value, row.based_on_code)
        elif value_type == FIXED:
            valuation = Valuation.fixed(row.fixed_amount)
        else:
            valuation = Valuation(value_type)
        return cls(
            code=row.code,
            name=row.name,
            kind=(row.type or "").upper(),
            valuation=valuation,
            max_limit=to_decimal(row.max_limit),
            is_taxable=bool(row.is_taxable),
            is_mandatory=bool(row.is_mandatory),
            is_active=bool(row.is_active),
            display_order=row.display_order,
            calc_rule=(row.calc_rule or "standard").upper(),
            is_employer_contribution=bool(row.is_employer_contribution),
            description=row.description,
            effective_from=row.effective_from,
            effective_to=row.effective_to,
        )


@dataclass(frozen=True)
class EmployeeAssignment:
    component: ComponentDefinition
    effective_from: date
    effective_to: Optional[date] = None
    amount: Optional[Decimal] = None
    percentage: Optional[Decimal] = None
    is_active: bool = True
    employee_id: Optional[int] = None
    id: Optional[int] = None

    @property
    def code(self) -> str:
        return self.component.code

    def covers(self, on_date: date) -> bool:
        return self.effective_from <= on_date and (self.effective_to is None or self.effective_to >= on_date)

    def overlaps(self, other: "EmployeeAssignment") -> bool:
        return windows_overlap(self.effective_from, self.effective_to, other.effective_from, other.effective_to)

    def apply(self, base: ComponentDefinition) -> ComponentDefinition:
        """
        Percentage overrides keep the catalog base (HRA stays "% of BASIC");
        amount overrides pin the component to a fixed value. Either way the
        override replaces any tax-slab rule.
        """
        if self.percentage is not None:
            valuation = Valuation.percentage(self.percentage, base.valuation.base_code)
        else:
            valuation = Valuation.fixed(self.amount)
        return replace(base, valuation=valuation, calc_rule=STANDARD)

    @classmethod
    def from_model(cls, row, component: Optional[ComponentDefinition] = None) -> "EmployeeAssignment":
        return cls(
            id=row.id,
            employee_id=row.employee_id,
            component=component or ComponentDefinition.from_model(row.component),
            amount=to_decimal(row.amount),
            percentage=to_decimal(row.percentage),
            effective_from=row.effective_from,
            effective_to=row.effective_to,
            is_active=bool(row.is_active),
        )


def windows_overlap(a_from: date, a_to: Optional[date], b_from: date, b_to: Optional[date]) -> bool:
    a_from = a_from or date.min
    b_from = b_from or date.min
    return a_from <= (b_to or date.max) and b_from <= (a_to or date.max)


# ---------- validation (catalog write time) ----------

def validate_definition(defn: ComponentDefinition) -> list[str]:
    errors = []
    if not defn.code or not CODE_RE.match(defn.code):
        errors.append("code must be upper-case letters, digits or '_' (max 50)")
    if not (defn.name or "").strip():
        errors.append("name is required")
    if defn.kind not in KINDS:
        errors.append("type must be 'earning' or 'deduction'")
    if defn.calc_rule not in CALC_RULES:
        errors.append("calc_rule must be 'standard' or 'tax_slab'")
    elif defn.is_tax_component and defn.kind != DEDUCTION:
        errors.append("tax_slab components must be deductions")

    # tax_slab components take their value from the ladder, not the valuation
    val = defn.valuation
    if val.mode not in (FIXED, PERCENTAGE):
        errors.append("value_type must be 'fixed' or 'percentage'")
    elif defn.is_tax_component:
        pass
    elif val.mode == FIXED:
        if val.amount is None:
            errors.append("fixed_amount is required for fixed components")
        elif val.amount < 0:
            errors.append("fixed_amount must not be negative")
    else:
        if val.rate is None:
            errors.append("percentage_value is required for percentage components")
        elif val.rate < 0:
            errors.append("percentage_value must not be negative")
        if val.of_code is not None and not CODE_RE.match(val.of_code):
            errors.append("based_on_code is not a valid component code")

    if defn.max_limit is not None:
        if defn.max_limit < 0:
            errors.append("max_limit must not be negative")
        elif defn.max_limit != defn.max_limit.quantize(CENT):
            errors.append("max_limit must have at most 2 decimal places")
    if not defn.effective_from:
        errors.append("effective_from is required (YYYY-MM-DD)")
    if defn.effective_from and defn.effective_to and defn.effective_to < defn.effective_from:
        errors.append("effective_to must be >= effective_from")
    return errors


def ensure_valid(defn: ComponentDefinition) -> ComponentDefinition:
    errors = validate_definition(defn)
    if errors:
        raise InvalidComponentConfiguration(
            f"Invalid salary component {defn.code or '?'}", errors=errors, component_code=defn.code
        )
    return defn


def validate_assignment_values(amount: Optional[Decimal], percentage: Optional[Decimal],
                               effective_from: Optional[date], effective_to: Optional[date]) -> list[str]:
    errors = []
    if amount is None and percentage is None:
        errors.append("amount or percentage is required")
    if amount is not None and amount < 0:
        errors.append("amount must not be negative")
    if percentage is not None and percentage < 0:
        errors.append("percentage must not be negative")
    if not effective_from:
        errors.append("effective_from is required (YYYY-MM-DD)")
    elif effective_to and effective_to < effective_from:
        errors.append("effective_to must be >= effective_from")
    return errors


def ensure_catalog_size(components: Sequence[ComponentDefinition], limit: int = MAX_COMPONENTS) -> None:
    if len(components) > limit:
        raise InvalidComponentConfiguration(
            f"Component set too large ({len(components)} > {limit})",
            errors=[f"at most {limit} components can be evaluated together"],
        )


def index_by_code(components: Iterable[ComponentDefinition]) -> dict[str, ComponentDefinition]:
    out: dict[str, ComponentDefinition] = {}
    for c in components:
        if c.code in out:
            raise InvalidComponentConfiguration(
                f"Duplicate component code {c.code}", errors=["code must be unique"], component_code=c.code
            )
        out[c.code] = c
    return out


# ---------- active set ----------

def merge_assignments(components: Iterable[ComponentDefinition],
                      assignments: Iterable[EmployeeAssignment],
                      as_of: date) -> tuple[ComponentDefinition, ...]:
    """
    Catalog defaults effective on `as_of`, with the employee's overrides
    active on that date laid over them (override wins on code collision).
    """
    active = index_by_code(c for c in components if c.is_active and c.is_effective_on(as_of))

    applied: dict[str, EmployeeAssignment] = {}
    for a in assignments:
        if not a.is_active or not a.covers(as_of):
            continue
        # the catalog component itself must be live on as_of
        if not a.component.is_active or not a.component.is_effective_on(as_of):
            continue
        if a.code in applied:
            raise InvalidComponentConfiguration(
                f"Overlapping assignments for component {a.code} on {as_of.isoformat()}",
                errors=["assignments for one employee and component must not overlap"],
                component_code=a.code,
            )
        applied[a.code] = a
        active[a.code] = a.apply(active.get(a.code, a.component))

    return tuple(sorted(active.values(), key=ComponentDefinition.sort_key))
