from datetime import date

import pytest

from compensation_api.services.component_catalog import DEDUCTION, EARNING, TAX_SLAB, ComponentDefinition, Valuation
from compensation_api.services.component_resolver import POLICY_STRICT, resolve_order
from compensation_api.services.compensation_errors import (
    CyclicComponentDependency, InvalidComponentConfiguration, UnresolvedComponentReference,
)


def _pct(code, rate, of=None, kind=EARNING, order=None):
    return ComponentDefinition(code=code, name=code, kind=kind,
                               valuation=Valuation.percentage(rate, of), display_order=order)


def _fixed(code, amount, kind=EARNING, order=None, **kw):
    return ComponentDefinition(code=code, name=code, kind=kind,
                               valuation=Valuation.fixed(amount), display_order=order, **kw)


def test_base_comes_before_dependent_regardless_of_declaration():
    comps = [
        _pct("PF_EMPLOYEE", 12, "BASIC_SALARY", kind=DEDUCTION, order=1),
        _pct("HRA", 50, "BASIC_SALARY", order=2),
        _pct("BASIC_SALARY", 50, order=3),
    ]
    plan = resolve_order(comps)
    order = list(plan.order)
    assert order.index("BASIC_SALARY") < order.index("HRA")
    assert order.index("BASIC_SALARY") < order.index("PF_EMPLOYEE")
    assert plan.fallbacks == {}


def test_independent_components_follow_display_order_then_code():
    comps = [_fixed("C", 1), _fixed("B", 1, order=5), _fixed("A", 1), _fixed("D", 1, order=1)]
    assert resolve_order(comps).order == ("D", "B", "A", "C")
    assert resolve_order(list(reversed(comps))).order == ("D", "B", "A", "C")


def test_chain_of_three():
    comps = [_pct("C", 10, "B"), _pct("B", 10, "A"), _pct("A", 10)]
    assert resolve_order(comps).order == ("A", "B", "C")


def test_tax_component_after_all_earnings():
    comps = [
        ComponentDefinition(code="TDS", name="TDS", kind=DEDUCTION, valuation=Valuation.fixed(None),
                            calc_rule=TAX_SLAB, display_order=1),
        _fixed("BONUS", 1000, order=50),
        _pct("BASIC_SALARY", 50, order=2),
        _fixed("PROF_TAX", 200, kind=DEDUCTION, order=60),
    ]
    order = list(resolve_order(comps).order)
    assert order.index("TDS") > order.index("BONUS")
    assert order.index("TDS") > order.index("BASIC_SALARY")
    # deductions are not inputs to the tax ladder
    assert order.index("PROF_TAX") > order.index("TDS")


def test_two_node_cycle():
    comps = [_pct("A", 10, "B"), _pct("B", 10, "A"), _fixed("OK", 1)]
    with pytest.raises(CyclicComponentDependency) as ei:
        resolve_order(comps)
    cycle = ei.value.cycle
    assert cycle[0] == cycle[-1]
    assert set(cycle) == {"A", "B"}
    assert ei.value.status_code == 422
    assert ei.value.code == "CYCLIC_COMPONENT_DEPENDENCY"


def test_self_reference_is_a_cycle():
    with pytest.raises(CyclicComponentDependency) as ei:
        resolve_order([_pct("A", 10, "A")])
    assert ei.value.cycle == ["A", "A"]


def test_cycle_behind_valid_prefix():
    comps = [_pct("BASE", 10), _pct("X", 10, "Z"), _pct("Y", 10, "X"), _pct("Z", 10, "Y")]
    with pytest.raises(CyclicComponentDependency) as ei:
        resolve_order(comps)
    assert set(ei.value.cycle) == {"X", "Y", "Z"}
    assert len(ei.value.cycle) == 4


def test_missing_base_fallback_vs_strict():
    comps = [_pct("HRA", 50, "BASIC_SALARY")]
    plan = resolve_order(comps)
    assert plan.order == ("HRA",)
    assert plan.is_fallback("HRA")
    assert plan.fallbacks == {"HRA": "BASIC_SALARY"}

    with pytest.raises(UnresolvedComponentReference) as ei:
        resolve_order(comps, POLICY_STRICT)
    assert ei.value.missing_code == "BASIC_SALARY"


def test_duplicate_code_rejected():
    with pytest.raises(InvalidComponentConfiguration):
        resolve_order([_fixed("A", 1), _fixed("A", 2)])
