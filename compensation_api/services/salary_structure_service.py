from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

from flask import current_app
from sqlalchemy import or_

from compensation_api.extensions import db
from compensation_api.models.employee import Employee
from compensation_api.models.payroll.components import SalaryComponent, EmployeeSalary
from .component_catalog import (
    MAX_COMPONENTS, ComponentDefinition, EmployeeAssignment, ensure_valid, index_by_code,
)
from .component_resolver import POLICY_FALLBACK, POLICY_STRICT, EvaluationPlan, resolve_order
from .compensation_engine import Breakdown, CompensationEngine
from .compensation_errors import InvalidComponentConfiguration
from .tax_slabs import TaxLadder, TaxSlabCalculator

log = logging.getLogger(__name__)


def _effective_on(model, on_date: date):
    return (
        model.effective_from <= on_date,
        or_(model.effective_to.is_(None), model.effective_to >= on_date),
    )


# ---------- engine wiring (app config) ----------

def build_tax_calculator(config=None) -> TaxSlabCalculator:
    config = config if config is not None else current_app.config
    return TaxSlabCalculator(TaxLadder.from_config(config.get("INCOME_TAX_LADDER")))


def build_engine(config=None) -> CompensationEngine:
    config = config if config is not None else current_app.config
    policy = (config.get("COMPONENT_REFERENCE_POLICY") or POLICY_FALLBACK).lower()
    if policy not in (POLICY_FALLBACK, POLICY_STRICT):
        log.warning("unknown COMPONENT_REFERENCE_POLICY %r, using %s", policy, POLICY_FALLBACK)
        policy = POLICY_FALLBACK
    return CompensationEngine(
        tax_calculator=build_tax_calculator(config),
        reference_policy=policy,
        max_components=int(config.get("MAX_SALARY_COMPONENTS") or MAX_COMPONENTS),
    )


# ---------- snapshots (one read each, copied into frozen dataclasses) ----------

def load_catalog_snapshot(on_date: Optional[date] = None) -> tuple:
    """Active catalog components; restricted to those effective on `on_date` when given."""
    q = SalaryComponent.query.filter(SalaryComponent.is_active.is_(True))
    if on_date:
        q = q.filter(*_effective_on(SalaryComponent, on_date))
    rows = q.order_by(SalaryComponent.display_order.asc(), SalaryComponent.code.asc()).all()
    return tuple(ComponentDefinition.from_model(r) for r in rows)


def load_assignments(employee_id: int, on_date: date) -> tuple:
    rows = (
        EmployeeSalary.query
        .filter(EmployeeSalary.employee_id == employee_id, EmployeeSalary.is_active.is_(True))
        .filter(*_effective_on(EmployeeSalary, on_date))
        .order_by(EmployeeSalary.component_id.asc(), EmployeeSalary.effective_from.asc())
        .all()
    )
    return tuple(EmployeeAssignment.from_model(r) for r in rows)


# ---------- calculations ----------

def calculate_employee_salary(employee: Employee, on_date: Optional[date] = None,
                              engine: Optional[CompensationEngine] = None,
                              catalog: Optional[Sequence[ComponentDefinition]] = None) -> Breakdown:
    on_date = on_date or date.today()
    engine = engine or build_engine()
    if catalog is None:
        catalog = load_catalog_snapshot(on_date)
    assignments = load_assignments(employee.id, on_date)
    return engine.evaluate(
        employee.monthly_wage,
        catalog,
        on_date,
        assignments=assignments,
        employee_id=employee.id,
        employee_name=employee.full_name,
    )


def calculate_for_employees(employees: Iterable[Employee], on_date: Optional[date] = None) -> List[Breakdown]:
    """Bulk variant: the catalog snapshot is read once and shared (it is immutable)."""
    on_date = on_date or date.today()
    engine = build_engine()
    catalog = load_catalog_snapshot(on_date)
    return [calculate_employee_salary(e, on_date, engine=engine, catalog=catalog) for e in employees]


def catalog_evaluation_plan(on_date: Optional[date] = None) -> EvaluationPlan:
    engine = build_engine()
    return resolve_order(load_catalog_snapshot(on_date), engine.reference_policy)


# ---------- catalog write-time checks ----------

def check_catalog_change(candidate: ComponentDefinition, replacing_code: Optional[str] = None) -> None:
    """
    Raises InvalidComponentConfiguration / CyclicComponentDependency if saving
    `candidate` (optionally in place of `replacing_code`) would leave the
    catalog invalid.
    """
    ensure_valid(candidate)

    if replacing_code and replacing_code != candidate.code:
        dependents = [
            code for (code,) in db.session.query(SalaryComponent.code)
            .filter(SalaryComponent.based_on_code == replacing_code, SalaryComponent.code != replacing_code)
            .order_by(SalaryComponent.code.asc())
        ]
        if dependents:
            raise InvalidComponentConfiguration(
                f"Cannot rename {replacing_code}: still the base of {', '.join(dependents)}",
                errors=[f"{code} is based on {replacing_code}" for code in dependents],
                component_code=replacing_code,
            )

    base = candidate.valuation.base_code
    if base and base != candidate.code and not candidate.is_tax_component:
        known = SalaryComponent.query.filter(SalaryComponent.code == base).first()
        if not known:
            raise InvalidComponentConfiguration(
                f"based_on_code {base} does not name a salary component",
                errors=[f"unknown based_on_code {base}"],
                component_code=candidate.code,
            )

    current = [c for c in load_catalog_snapshot() if c.code not in (replacing_code, candidate.code)]
    if candidate.is_active:
        current.append(candidate)
    index_by_code(current)
    resolve_order(current, POLICY_FALLBACK)


def assignment_overlaps(employee_id: int, component_id: int, frm: date, to: Optional[date],
                        exclude_id: Optional[int] = None) -> bool:
    """Active assignments of one employee+component must not overlap."""
    q = EmployeeSalary.query.filter(
        EmployeeSalary.employee_id == employee_id,
        EmployeeSalary.component_id == component_id,
        EmployeeSalary.is_active.is_(True),
    )
    if exclude_id is not None:
        q = q.filter(EmployeeSalary.id != exclude_id)
    this_to = to or date.max
    for other in q.all():
        o_from = other.effective_from or date.min
        o_to = other.effective_to or date.max
        if frm <= o_to and o_from <= this_to:
            return True
    return False
