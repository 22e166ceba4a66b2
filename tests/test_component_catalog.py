from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from compensation_api.services.component_catalog import (
    DEDUCTION, EARNING, FIXED, PERCENTAGE, STANDARD, TAX_SLAB,
    ComponentDefinition, EmployeeAssignment, Valuation,
    ensure_catalog_size, ensure_valid, index_by_code, merge_assignments,
    validate_assignment_values, validate_definition, windows_overlap,
)
from compensation_api.services.compensation_errors import InvalidComponentConfiguration


def _comp(code, kind=EARNING, valuation=None, **kw):
    return ComponentDefinition(code=code, name=code.title(), kind=kind,
                               valuation=valuation or Valuation.fixed(100), **kw)


def _row(**kw):
    base = dict(code="HRA", name="House Rent Allowance", description=None, type="earning",
                value_type="percentage", percentage_value=Decimal("50"), fixed_amount=None,
                based_on_code="BASIC_SALARY", max_limit=None, calc_rule="standard",
                is_taxable=True, is_mandatory=False, is_active=True, is_employer_contribution=False,
                display_order=2, effective_from=date(2024, 4, 1), effective_to=None)
    base.update(kw)
    return SimpleNamespace(**base)


def test_from_model_percentage_row():
    d = ComponentDefinition.from_model(_row())
    assert d.kind == EARNING
    assert d.valuation.mode == PERCENTAGE
    assert d.valuation.rate == Decimal("50")
    assert d.valuation.base_code == "BASIC_SALARY"
    assert d.calc_rule == STANDARD


def test_from_model_fixed_row_has_no_base():
    d = ComponentDefinition.from_model(_row(value_type="fixed", fixed_amount=200, based_on_code="BASIC_SALARY"))
    assert d.valuation.mode == FIXED
    assert d.valuation.amount == Decimal("200")
    assert d.valuation.base_code is None


def test_employer_side_by_flag_or_code():
    assert _comp("PF_EMPLOYER", kind=DEDUCTION).is_employer_side
    assert _comp("ESI_ER", kind=DEDUCTION, is_employer_contribution=True).is_employer_side
    assert not _comp("PF_EMPLOYEE", kind=DEDUCTION).is_employer_side
    # earnings are never employer contributions
    assert not _comp("EMPLOYER_BONUS", kind=EARNING).is_employer_side


def test_validate_definition_collects_errors():
    bad = ComponentDefinition(code="hra", name="", kind="BONUS",
                              valuation=Valuation.percentage(-5), max_limit=Decimal("-1"))
    errors = validate_definition(bad)
    assert any("code" in e for e in errors)
    assert any("name" in e for e in errors)
    assert any("type" in e for e in errors)
    assert any("percentage_value" in e for e in errors)
    assert any("max_limit" in e for e in errors)


def test_tax_slab_must_be_deduction_and_skips_valuation_checks():
    ok = _comp("TDS", kind=DEDUCTION, valuation=Valuation.fixed(None), calc_rule=TAX_SLAB,
               effective_from=date(2024, 4, 1))
    assert validate_definition(ok) == []

    bad = _comp("TDS", kind=EARNING, valuation=Valuation.fixed(None), calc_rule=TAX_SLAB)
    with pytest.raises(InvalidComponentConfiguration) as ei:
        ensure_valid(bad)
    assert "tax_slab components must be deductions" in ei.value.errors


def test_fixed_requires_amount():
    errors = validate_definition(_comp("PT", kind=DEDUCTION, valuation=Valuation.fixed(None),
                                       effective_from=date(2024, 4, 1)))
    assert errors == ["fixed_amount is required for fixed components"]


def test_assignment_values():
    assert validate_assignment_values(Decimal("10"), None, date(2025, 1, 1), None) == []
    errs = validate_assignment_values(None, None, None, None)
    assert "amount or percentage is required" in errs
    assert "effective_from is required (YYYY-MM-DD)" in errs
    errs = validate_assignment_values(Decimal("1"), None, date(2025, 2, 1), date(2025, 1, 1))
    assert errs == ["effective_to must be >= effective_from"]


def test_windows_overlap_open_ended():
    assert windows_overlap(date(2025, 1, 1), None, date(2030, 1, 1), None)
    assert windows_overlap(date(2025, 1, 1), date(2025, 3, 31), date(2025, 3, 31), None)
    assert not windows_overlap(date(2025, 1, 1), date(2025, 3, 31), date(2025, 4, 1), None)


def test_duplicate_codes_and_size_limit():
    with pytest.raises(InvalidComponentConfiguration):
        index_by_code([_comp("A"), _comp("A")])
    with pytest.raises(InvalidComponentConfiguration):
        ensure_catalog_size([_comp(f"C{i}") for i in range(4)], limit=3)
    ensure_catalog_size([_comp(f"C{i}") for i in range(3)], limit=3)


def test_merge_filters_inactive_and_out_of_window():
    comps = [
        _comp("BASIC_SALARY", display_order=1),
        _comp("OLD", display_order=2, effective_to=date(2024, 12, 31)),
        _comp("OFF", display_order=3, is_active=False),
        _comp("LATER", display_order=4, effective_from=date(2026, 1, 1)),
    ]
    got = merge_assignments(comps, [], date(2025, 6, 1))
    assert [c.code for c in got] == ["BASIC_SALARY"]


def test_merge_assignment_override_keeps_percentage_base():
    hra = _comp("HRA", valuation=Valuation.percentage(50, "BASIC_SALARY"), display_order=2)
    basic = _comp("BASIC_SALARY", valuation=Valuation.percentage(50), display_order=1)
    pct = EmployeeAssignment(component=hra, effective_from=date(2025, 1, 1), percentage=Decimal("40"))
    got = {c.code: c for c in merge_assignments([basic, hra], [pct], date(2025, 6, 1))}
    assert got["HRA"].valuation.rate == Decimal("40")
    assert got["HRA"].valuation.base_code == "BASIC_SALARY"

    amt = EmployeeAssignment(component=hra, effective_from=date(2025, 1, 1), amount=Decimal("9000"))
    got = {c.code: c for c in merge_assignments([basic, hra], [amt], date(2025, 6, 1))}
    assert got["HRA"].valuation == Valuation.fixed(Decimal("9000"))


def test_merge_ignores_assignment_outside_window():
    basic = _comp("BASIC_SALARY", valuation=Valuation.percentage(50))
    a = EmployeeAssignment(component=basic, effective_from=date(2025, 1, 1), effective_to=date(2025, 3, 31),
                           amount=Decimal("1"))
    got = merge_assignments([basic], [a], date(2025, 6, 1))
    assert got[0].valuation.is_percentage


def test_merge_rejects_overlapping_assignments():
    basic = _comp("BASIC_SALARY")
    a = EmployeeAssignment(component=basic, effective_from=date(2025, 1, 1), amount=Decimal("1"))
    b = EmployeeAssignment(component=basic, effective_from=date(2025, 3, 1), amount=Decimal("2"))
    with pytest.raises(InvalidComponentConfiguration):
        merge_assignments([basic], [a, b], date(2025, 6, 1))


def test_merge_sorted_by_display_order_then_code():
    comps = [_comp("Z", display_order=1), _comp("B"), _comp("A"), _comp("M", display_order=5)]
    got = merge_assignments(comps, [], date(2025, 1, 1))
    assert [c.code for c in got] == ["Z", "M", "A", "B"]


def test_effective_from_required():
    errors = validate_definition(_comp("PT", kind=DEDUCTION, valuation=Valuation.fixed(200)))
    assert errors == ["effective_from is required (YYYY-MM-DD)"]


def test_max_limit_precision():
    base = dict(kind=DEDUCTION, valuation=Valuation.percentage(12, "BASIC_SALARY"), effective_from=date(2024, 4, 1))
    assert validate_definition(_comp("PF", max_limit=Decimal("1800.00"), **base)) == []
    errors = validate_definition(_comp("PF", max_limit=Decimal("10.005"), **base))
    assert errors == ["max_limit must have at most 2 decimal places"]


def test_merge_skips_assignment_for_component_outside_its_window():
    basic = _comp("BASIC_SALARY", valuation=Valuation.percentage(50), display_order=1)
    retired = _comp("CONVEYANCE", effective_from=date(2024, 4, 1), effective_to=date(2024, 12, 31))
    a = EmployeeAssignment(component=retired, effective_from=date(2024, 4, 1), amount=Decimal("1600"))
    assert [c.code for c in merge_assignments([basic, retired], [a], date(2024, 6, 1))] == ["BASIC_SALARY", "CONVEYANCE"]
    assert [c.code for c in merge_assignments([basic, retired], [a], date(2025, 6, 1))] == ["BASIC_SALARY"]
