"""
Compensation engine: one employee's wage + active components -> Breakdown.

evaluate() reads nothing but its arguments. Each component value is rounded,
then capped at currency precision, and only that value is exposed to
dependents, so chained percentages reproduce exactly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .component_catalog import (
    EARNING, MAX_COMPONENTS, ComponentDefinition, EmployeeAssignment,
    ensure_catalog_size, merge_assignments,
)
from .component_resolver import POLICY_FALLBACK, EvaluationPlan, resolve_order
from .compensation_errors import ComponentEvaluationError, NegativeWage
from .money import MONTHS_PER_YEAR, ZERO, cap_money, percent_of, round_money, to_decimal
from .tax_slabs import TaxSlabCalculator

log = logging.getLogger(__name__)

BASE_WAGE = "WAGE"
BASIC_SALARY_CODE = "BASIC_SALARY"
BASIC_SALARY_NAME = "Basic Salary"


@dataclass(frozen=True)
class LineItem:
    code: str
    name: str
    kind: str
    amount: Decimal
    percentage: Optional[Decimal] = None
    is_taxable: bool = True
    base: Optional[str] = None          # component code, "WAGE", or None for fixed/tax lines
    capped: bool = False
    base_fallback: bool = False
    description: Optional[str] = None

    def to_dict(self):
        return {
            "code": self.code,
            "name": self.name,
            "type": self.kind,
            "amount": float(self.amount),
            "percentage": float(self.percentage) if self.percentage is not None else None,
            "is_taxable": self.is_taxable,
            "base": self.base,
            "capped": self.capped,
            "base_fallback": self.base_fallback,
            "description": self.description,
        }


@dataclass(frozen=True)
class Breakdown:
    employee_id: Optional[int]
    employee_name: Optional[str]
    as_of: date
    monthly_wage: Decimal
    yearly_wage: Decimal
    earnings: Tuple[LineItem, ...]
    deductions: Tuple[LineItem, ...]
    employer_contribution_items: Tuple[LineItem, ...]
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    employer_contributions: Decimal
    evaluation_order: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def amounts(self) -> Dict[str, Decimal]:
        return {li.code: li.amount for li in self.earnings + self.deductions + self.employer_contribution_items}

    def to_dict(self):
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "as_of": self.as_of.isoformat(),
            "monthly_wage": float(self.monthly_wage),
            "yearly_wage": float(self.yearly_wage),
            "earnings": [li.to_dict() for li in self.earnings],
            "deductions": [li.to_dict() for li in self.deductions],
            "employer_contribution_items": [li.to_dict() for li in self.employer_contribution_items],
            "gross_salary": float(self.gross_salary),
            "total_deductions": float(self.total_deductions),
            "net_salary": float(self.net_salary),
            "employer_contributions": float(self.employer_contributions),
            "evaluation_order": list(self.evaluation_order),
            "warnings": list(self.warnings),
        }


@dataclass
class _Evaluation:
    """Working state of a single evaluate() call; never shared."""
    wage: Decimal
    values: Dict[str, Decimal] = field(default_factory=dict)
    lines: Dict[str, LineItem] = field(default_factory=dict)
    earnings_total: Decimal = ZERO
    non_taxable_earnings: Decimal = ZERO


class CompensationEngine:
    def __init__(self, tax_calculator: Optional[TaxSlabCalculator] = None,
                 reference_policy: str = POLICY_FALLBACK,
                 max_components: int = MAX_COMPONENTS):
        self.tax_calculator = tax_calculator or TaxSlabCalculator()
        self.reference_policy = reference_policy
        self.max_components = max_components

    def evaluate(self, employee_wage, active_components: Sequence[ComponentDefinition], as_of: date,
                 assignments: Iterable[EmployeeAssignment] = (),
                 employee_id: Optional[int] = None,
                 employee_name: Optional[str] = None) -> Breakdown:
        wage = to_decimal(employee_wage if employee_wage is not None else 0)
        if wage < 0:
            raise NegativeWage(wage)
        wage = round_money(wage)

        components = merge_assignments(active_components, assignments, as_of)
        ensure_catalog_size(components, self.max_components)

        if not components:
            log.info("no active salary components for employee %s, using basic salary line", employee_id)
            return self._basic_breakdown(wage, as_of, employee_id, employee_name)

        plan = resolve_order(components, self.reference_policy)
        by_code = {c.code: c for c in components}

        state = _Evaluation(wage=wage)
        for code in plan.order:
            self._evaluate_component(by_code[code], plan, state)

        return self._aggregate(state, components, plan, as_of, employee_id, employee_name)

    # ---------- per component ----------

    def _evaluate_component(self, comp: ComponentDefinition, plan: EvaluationPlan, state: _Evaluation) -> None:
        val = comp.valuation
        base = None
        percentage = None
        fallback = plan.is_fallback(comp.code)

        if comp.is_tax_component:
            raw = self._tax_for(state)
        elif val.is_percentage:
            percentage = val.rate
            if val.of_code is None or fallback:
                base = BASE_WAGE
                raw = percent_of(state.wage, val.rate)
            else:
                if val.of_code not in state.values:
                    raise ComponentEvaluationError(
                        f"Base {val.of_code} of {comp.code} was not computed before it",
                        payload={"component": comp.code, "based_on_code": val.of_code},
                    )
                base = val.of_code
                raw = percent_of(state.values[val.of_code], val.rate)
        else:
            raw = val.amount if val.amount is not None else ZERO

        amount = round_money(raw)
        capped = False
        if comp.max_limit is not None:
            limit = cap_money(comp.max_limit)
            if amount > limit:
                amount, capped = limit, True

        state.values[comp.code] = amount
        if comp.is_earning:
            state.earnings_total += amount
            if not comp.is_taxable:
                state.non_taxable_earnings += amount

        state.lines[comp.code] = LineItem(
            code=comp.code,
            name=comp.name,
            kind=comp.kind,
            amount=amount,
            percentage=percentage,
            is_taxable=comp.is_taxable,
            base=base,
            capped=capped,
            base_fallback=fallback,
            description=comp.description,
        )

    def _tax_for(self, state: _Evaluation) -> Decimal:
        # resolver puts every earning ahead of the tax components
        annual_gross = state.earnings_total * MONTHS_PER_YEAR
        annual_other = (self.tax_calculator.ladder.assumed_other_deductions
                        + state.non_taxable_earnings * MONTHS_PER_YEAR)
        return self.tax_calculator.monthly_tax(annual_gross, annual_other)

    # ---------- aggregation ----------

    def _aggregate(self, state: _Evaluation, components: Sequence[ComponentDefinition], plan: EvaluationPlan,
                   as_of: date, employee_id, employee_name) -> Breakdown:
        earnings: List[LineItem] = []
        deductions: List[LineItem] = []
        employer: List[LineItem] = []

        # components arrive sorted by display order; evaluation order is kept separately
        for comp in components:
            line = state.lines[comp.code]
            if comp.kind == EARNING:
                earnings.append(line)
            elif comp.is_employer_side:
                employer.append(line)
            else:
                deductions.append(line)

        gross = sum((li.amount for li in earnings), ZERO)
        total_deductions = sum((li.amount for li in deductions), ZERO)
        employer_total = sum((li.amount for li in employer), ZERO)

        warnings = tuple(
            f"{code}: base {missing} is not active, computed as percentage of wage"
            for code, missing in sorted(plan.fallbacks.items())
        )

        return Breakdown(
            employee_id=employee_id,
            employee_name=employee_name,
            as_of=as_of,
            monthly_wage=state.wage,
            yearly_wage=state.wage * MONTHS_PER_YEAR,
            earnings=tuple(earnings),
            deductions=tuple(deductions),
            employer_contribution_items=tuple(employer),
            gross_salary=gross,
            total_deductions=total_deductions,
            net_salary=gross - total_deductions,
            employer_contributions=employer_total,
            evaluation_order=plan.order,
            warnings=warnings,
        )

    def _basic_breakdown(self, wage: Decimal, as_of: date, employee_id, employee_name) -> Breakdown:
        line = LineItem(
            code=BASIC_SALARY_CODE,
            name=BASIC_SALARY_NAME,
            kind=EARNING,
            amount=wage,
            is_taxable=True,
            base=BASE_WAGE,
        )
        return Breakdown(
            employee_id=employee_id,
            employee_name=employee_name,
            as_of=as_of,
            monthly_wage=wage,
            yearly_wage=wage * MONTHS_PER_YEAR,
            earnings=(line,),
            deductions=(),
            employer_contribution_items=(),
            gross_salary=wage,
            total_deductions=ZERO,
            net_salary=wage,
            employer_contributions=ZERO,
            evaluation_order=(BASIC_SALARY_CODE,),
        )
