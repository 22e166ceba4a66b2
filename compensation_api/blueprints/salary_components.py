from __future__ import annotations
from datetime import date
from types import SimpleNamespace
from flask import Blueprint, request, current_app

from compensation_api.extensions import db
from compensation_api.common.http import ok, fail
from compensation_api.common.paging import (
    page_limit, text_q, parse_date as _d, parse_decimal as _dec, parse_bool as _bool, num_to_float,
)
from compensation_api.models.payroll.components import SalaryComponent
from compensation_api.services.component_catalog import ComponentDefinition
from compensation_api.services.salary_structure_service import check_catalog_change, catalog_evaluation_plan

bp = Blueprint("salary_components", __name__, url_prefix="/api/v1/salary-components")

_FIELDS = (
    "code", "name", "description", "type", "value_type", "percentage_value", "fixed_amount",
    "based_on_code", "max_limit", "calc_rule", "is_taxable", "is_mandatory", "is_active",
    "is_employer_contribution", "display_order", "effective_from", "effective_to",
)
_DECIMALS = ("percentage_value", "fixed_amount", "max_limit")
_BOOLS = ("is_taxable", "is_mandatory", "is_active", "is_employer_contribution")
_DATES = ("effective_from", "effective_to")

# ---------- helpers ----------

def _row(c: SalaryComponent):
    return {
        "id": c.id,
        "code": c.code,
        "name": c.name,
        "description": c.description,
        "type": c.type,
        "value_type": c.value_type,
        "percentage_value": num_to_float(c.percentage_value),
        "fixed_amount": num_to_float(c.fixed_amount),
        "based_on_code": c.based_on_code,
        "max_limit": num_to_float(c.max_limit),
        "calc_rule": c.calc_rule,
        "is_taxable": c.is_taxable,
        "is_mandatory": c.is_mandatory,
        "is_active": c.is_active,
        "is_employer_contribution": c.is_employer_contribution,
        "display_order": c.display_order,
        "effective_from": c.effective_from.isoformat() if c.effective_from else None,
        "effective_to": c.effective_to.isoformat() if c.effective_to else None,
    }

def _defaults():
    return {
        "description": None, "value_type": "fixed", "percentage_value": None, "fixed_amount": None,
        "based_on_code": None, "max_limit": None, "calc_rule": "standard", "is_taxable": True,
        "is_mandatory": False, "is_active": True, "is_employer_contribution": False,
        "display_order": 100, "effective_from": date.today(), "effective_to": None,
    }

def _current_fields(c: SalaryComponent) -> dict:
    return {k: getattr(c, k) for k in _FIELDS}

def _merge_payload(fields: dict, j: dict) -> dict:
    out = dict(fields)
    for k in _FIELDS:
        if k not in j:
            continue
        v = j.get(k)
        if k in _DECIMALS:
            v = _dec(v)
        elif k in _BOOLS:
            v = bool(_bool(v))
        elif k in _DATES:
            v = _d(v)
        elif k == "display_order":
            try:
                v = int(v) if v is not None else None
            except (TypeError, ValueError):
                v = None
        elif k in ("code", "based_on_code"):
            v = (str(v).strip().upper() or None) if v else None
        elif k in ("type", "value_type", "calc_rule"):
            v = str(v).strip().lower() if v else None
        out[k] = v
    return out

def _definition(fields: dict) -> ComponentDefinition:
    return ComponentDefinition.from_model(SimpleNamespace(**fields))

def _apply(c: SalaryComponent, fields: dict):
    for k in _FIELDS:
        setattr(c, k, fields[k])

# ---------- routes ----------

@bp.post("")
def create_component():
    j = request.get_json(silent=True) or {}
    fields = _merge_payload({**_defaults(), "code": None, "name": None, "type": None}, j)

    if not fields["code"] or not fields["name"] or not fields["type"]:
        return fail("code, name and type are required", 422)

    if SalaryComponent.query.filter_by(code=fields["code"]).first():
        current_app.logger.warning("salary component %s rejected: duplicate code", fields["code"])
        return fail(f"Component code {fields['code']} already exists", 409, code="DUPLICATE_CODE")

    check_catalog_change(_definition(fields))

    c = SalaryComponent()
    _apply(c, fields)
    db.session.add(c)
    db.session.commit()
    current_app.logger.info("salary component %s created", c.code)
    return ok(_row(c), 201)

@bp.get("")
def list_components():
    q = SalaryComponent.query

    if request.args.get("type"):
        q = q.filter(SalaryComponent.type == request.args["type"].lower())

    if "is_active" in request.args:
        want = request.args.get("is_active").lower() in ("1", "true", "yes")
        q = q.filter(SalaryComponent.is_active == want)

    active_on = _d(request.args.get("active_on"))
    if active_on:
        q = q.filter(
            SalaryComponent.effective_from <= active_on,
            db.or_(SalaryComponent.effective_to.is_(None), SalaryComponent.effective_to >= active_on),
        )

    term = text_q()
    if term:
        like = f"%{term.lower()}%"
        q = q.filter(db.or_(SalaryComponent.code.ilike(like), SalaryComponent.name.ilike(like)))

    q = q.order_by(SalaryComponent.display_order.asc(), SalaryComponent.code.asc())
    page, size = page_limit()
    total = q.count()
    rows = q.offset((page - 1) * size).limit(size).all()
    return ok([_row(x) for x in rows], page=page, size=size, total=total)

@bp.get("/evaluation-order")
def evaluation_order():
    raw = request.args.get("as_of")
    as_of = _d(raw)
    if raw and not as_of:
        return fail("as_of must be YYYY-MM-DD", 422)
    plan = catalog_evaluation_plan(as_of or date.today())
    return ok({"order": list(plan.order), "fallbacks": plan.fallbacks})

@bp.get("/<int:component_id>")
def get_component(component_id: int):
    c = db.session.get(SalaryComponent, component_id)
    if not c:
        return fail("Not found", 404)
    return ok(_row(c))

@bp.patch("/<int:component_id>")
def patch_component(component_id: int):
    c = db.session.get(SalaryComponent, component_id)
    if not c:
        return fail("Not found", 404)

    j = request.get_json(silent=True) or {}
    fields = _merge_payload(_current_fields(c), j)

    if c.is_mandatory and not fields["is_active"]:
        return fail("Mandatory components cannot be deactivated", 409, code="MANDATORY_COMPONENT")

    if fields["code"] != c.code and SalaryComponent.query.filter_by(code=fields["code"]).first():
        return fail(f"Component code {fields['code']} already exists", 409, code="DUPLICATE_CODE")

    check_catalog_change(_definition(fields), replacing_code=c.code)

    _apply(c, fields)
    db.session.commit()
    current_app.logger.info("salary component %s updated", c.code)
    return ok(_row(c))

@bp.delete("/<int:component_id>")
def deactivate_component(component_id: int):
    c = db.session.get(SalaryComponent, component_id)
    if not c:
        return fail("Not found", 404)
    if c.is_mandatory:
        return fail("Mandatory components cannot be deactivated", 409, code="MANDATORY_COMPONENT")
    c.is_active = False
    db.session.commit()
    current_app.logger.info("salary component %s deactivated", c.code)
    return ok(_row(c))
