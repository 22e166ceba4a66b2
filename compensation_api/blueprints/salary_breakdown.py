from __future__ import annotations
from datetime import date
from flask import Blueprint, Response, request

from compensation_api.extensions import db
from compensation_api.common.http import ok, fail
from compensation_api.common.paging import page_limit, parse_date as _d, parse_decimal as _dec
from compensation_api.models.employee import Employee
from compensation_api.services.breakdown_export import generate_file
from compensation_api.services.salary_structure_service import (
    build_tax_calculator, calculate_employee_salary, calculate_for_employees,
)

bp = Blueprint("salary_breakdown", __name__, url_prefix="/api/v1/payroll")

# ---------- helpers ----------

def _as_of():
    """(date, error_response) from ?as_of=YYYY-MM-DD, defaulting to today."""
    raw = request.args.get("as_of")
    if not raw:
        return date.today(), None
    d = _d(raw)
    if not d:
        return None, fail("as_of must be YYYY-MM-DD", 422)
    return d, None

def _active_employees():
    return Employee.query.filter(Employee.status == "active").order_by(Employee.code.asc())

# ---------- breakdowns ----------

@bp.get("/employees/<int:employee_id>/salary-breakdown")
def employee_breakdown(employee_id: int):
    as_of, err = _as_of()
    if err:
        return err
    emp = db.session.get(Employee, employee_id)
    if not emp:
        return fail("Employee not found", 404)
    return ok(calculate_employee_salary(emp, as_of))

@bp.get("/salary-breakdowns")
def list_breakdowns():
    as_of, err = _as_of()
    if err:
        return err
    q = _active_employees()
    page, size = page_limit()
    total = q.count()
    employees = q.offset((page - 1) * size).limit(size).all()
    return ok(calculate_for_employees(employees, as_of), page=page, size=size, total=total, as_of=as_of.isoformat())

@bp.get("/salary-breakdowns/export")
def export_breakdowns():
    as_of, err = _as_of()
    if err:
        return err
    fmt = (request.args.get("format") or "csv").lower()
    breakdowns = calculate_for_employees(_active_employees().all(), as_of)
    content, file_name, mime = generate_file(breakdowns, fmt, f"salary_register_{as_of.isoformat()}")
    return Response(
        content,
        mimetype=mime,
        headers={"Content-Disposition": f"attachment; filename={file_name}"},
    )

# ---------- income tax ----------

@bp.post("/tax/preview")
def tax_preview():
    j = request.get_json(silent=True) or {}
    gross = _dec(j.get("annual_gross"))
    if gross is None or gross < 0:
        return fail("annual_gross must be a non-negative number", 422)
    other = None
    if j.get("annual_other_deductions") is not None:
        other = _dec(j.get("annual_other_deductions"))
        if other is None or other < 0:
            return fail("annual_other_deductions must be a non-negative number", 422)
    return ok(build_tax_calculator().breakdown(gross, other))

@bp.get("/tax/effective-rate")
def tax_effective_rate():
    gross = _dec(request.args.get("annual_gross"))
    if gross is None or gross < 0:
        return fail("annual_gross must be a non-negative number", 422)
    calc = build_tax_calculator()
    return ok({"annual_gross": float(gross), "effective_rate": float(calc.effective_rate(gross))})
