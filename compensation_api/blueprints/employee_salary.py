from __future__ import annotations
from flask import Blueprint, request, current_app

from compensation_api.extensions import db
from compensation_api.common.http import ok, fail
from compensation_api.common.paging import (
    page_limit, parse_date as _d, parse_decimal as _dec, parse_bool as _bool, num_to_float,
)
from compensation_api.models.employee import Employee
from compensation_api.models.payroll.components import SalaryComponent, EmployeeSalary
from compensation_api.services.component_catalog import validate_assignment_values
from compensation_api.services.salary_structure_service import assignment_overlaps

bp = Blueprint("employee_salary", __name__, url_prefix="/api/v1/employee-salary")

# ---------- helpers ----------

def _row(a: EmployeeSalary):
    return {
        "id": a.id,
        "employee_id": a.employee_id,
        "component_id": a.component_id,
        "component_code": a.component.code if a.component else None,
        "amount": num_to_float(a.amount),
        "percentage": num_to_float(a.percentage),
        "effective_from": a.effective_from.isoformat() if a.effective_from else None,
        "effective_to": a.effective_to.isoformat() if a.effective_to else None,
        "is_active": a.is_active,
        "remarks": a.remarks,
    }

def _int(x):
    try:
        return int(x)
    except (TypeError, ValueError):
        return None

# ---------- routes ----------

@bp.post("")
def create_assignment():
    j = request.get_json(silent=True) or {}
    employee_id = _int(j.get("employee_id"))
    component_id = _int(j.get("component_id"))
    if not employee_id or not component_id:
        return fail("employee_id and component_id are required", 422)

    if not db.session.get(Employee, employee_id):
        return fail("Employee not found", 404)
    comp = db.session.get(SalaryComponent, component_id)
    if not comp:
        return fail("Salary component not found", 404)

    amount = _dec(j.get("amount"))
    percentage = _dec(j.get("percentage"))
    eff_from = _d(j.get("effective_from"))
    eff_to = _d(j.get("effective_to"))

    errors = validate_assignment_values(amount, percentage, eff_from, eff_to)
    if errors:
        return fail("Invalid salary assignment", 422, code="INVALID_ASSIGNMENT", errors=errors)

    if assignment_overlaps(employee_id, component_id, eff_from, eff_to):
        current_app.logger.warning("salary assignment for employee %s (%s) rejected: overlap", employee_id, comp.code)
        return fail("Overlapping effective period for this employee and component", 409,
                    code="OVERLAPPING_ASSIGNMENT")

    a = EmployeeSalary(
        employee_id=employee_id,
        component_id=component_id,
        amount=amount,
        percentage=percentage,
        effective_from=eff_from,
        effective_to=eff_to,
        is_active=True,
        remarks=j.get("remarks"),
    )
    db.session.add(a)
    db.session.commit()
    current_app.logger.info("salary assignment %s for employee %s (%s) created", a.id, employee_id, comp.code)
    return ok(_row(a), 201)

@bp.get("")
def list_assignments():
    q = EmployeeSalary.query

    for key, col in (("employee_id", EmployeeSalary.employee_id), ("component_id", EmployeeSalary.component_id)):
        if request.args.get(key):
            val = _int(request.args[key])
            if val is None:
                return fail(f"{key} must be integer", 422)
            q = q.filter(col == val)

    active_on = _d(request.args.get("active_on"))
    if active_on:
        q = q.filter(
            EmployeeSalary.is_active.is_(True),
            EmployeeSalary.effective_from <= active_on,
            db.or_(EmployeeSalary.effective_to.is_(None), EmployeeSalary.effective_to >= active_on),
        )

    if "is_active" in request.args:
        want = request.args.get("is_active").lower() in ("1", "true", "yes")
        q = q.filter(EmployeeSalary.is_active == want)

    q = q.order_by(EmployeeSalary.employee_id.asc(), EmployeeSalary.effective_from.desc())
    page, size = page_limit()
    total = q.count()
    rows = q.offset((page - 1) * size).limit(size).all()
    return ok([_row(x) for x in rows], page=page, size=size, total=total)

@bp.get("/<int:assignment_id>")
def get_assignment(assignment_id: int):
    a = db.session.get(EmployeeSalary, assignment_id)
    if not a:
        return fail("Not found", 404)
    return ok(_row(a))

@bp.patch("/<int:assignment_id>")
def patch_assignment(assignment_id: int):
    a = db.session.get(EmployeeSalary, assignment_id)
    if not a:
        return fail("Not found", 404)

    j = request.get_json(silent=True) or {}
    amount = _dec(j.get("amount")) if "amount" in j else a.amount
    percentage = _dec(j.get("percentage")) if "percentage" in j else a.percentage
    eff_from = _d(j.get("effective_from")) if "effective_from" in j else a.effective_from
    eff_to = _d(j.get("effective_to")) if "effective_to" in j else a.effective_to
    is_active = bool(_bool(j.get("is_active"))) if "is_active" in j else a.is_active

    errors = validate_assignment_values(amount, percentage, eff_from, eff_to)
    if errors:
        return fail("Invalid salary assignment", 422, code="INVALID_ASSIGNMENT", errors=errors)

    dates_changed = (eff_from, eff_to) != (a.effective_from, a.effective_to)
    if is_active and (dates_changed or not a.is_active):
        if assignment_overlaps(a.employee_id, a.component_id, eff_from, eff_to, exclude_id=a.id):
            return fail("Overlapping effective period for this employee and component", 409,
                        code="OVERLAPPING_ASSIGNMENT")

    a.amount, a.percentage = amount, percentage
    a.effective_from, a.effective_to = eff_from, eff_to
    a.is_active = is_active
    if "remarks" in j:
        a.remarks = j.get("remarks")

    db.session.commit()
    return ok(_row(a))

@bp.delete("/<int:assignment_id>")
def deactivate_assignment(assignment_id: int):
    a = db.session.get(EmployeeSalary, assignment_id)
    if not a:
        return fail("Not found", 404)
    a.is_active = False
    db.session.commit()
    current_app.logger.info("salary assignment %s deactivated", a.id)
    return ok(_row(a))
