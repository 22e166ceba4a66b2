from decimal import Decimal

import pytest

from compensation_api.services.compensation_errors import InvalidTaxConfiguration
from compensation_api.services.tax_slabs import DEFAULT_TAX_LADDER, TaxLadder, TaxSlabCalculator


def test_worked_example_monthly_tds():
    calc = TaxSlabCalculator()
    b = calc.breakdown(600000, 150000)
    # 600000 - 50000 - 150000 = 400000 -> 5% of 150000 = 7500, +4% cess = 7800
    assert b.taxable_income == Decimal("400000.00")
    assert b.income_tax == Decimal("7500.00")
    assert b.cess == Decimal("300.00")
    assert b.total_annual_tax == Decimal("7800.00")
    assert b.monthly_tax == Decimal("650.00")
    assert calc.monthly_tax(600000, 150000) == Decimal("650.00")


def test_omitted_deductions_use_assumption():
    calc = TaxSlabCalculator()
    assert calc.monthly_tax(600000) == calc.monthly_tax(600000, 150000)
    assert calc.monthly_tax_from_salary(50000) == Decimal("650.00")


def test_zero_and_below_exemption():
    calc = TaxSlabCalculator()
    assert calc.monthly_tax(0) == Decimal("0.00")
    assert calc.effective_rate(0) == Decimal("0.00")
    # taxable exactly at the first ceiling pays nothing
    assert calc.monthly_tax(450000, 150000) == Decimal("0.00")


def test_taxable_income_clamped_at_zero():
    calc = TaxSlabCalculator()
    assert calc.taxable_income(Decimal("10000"), Decimal("150000")) == Decimal("0")
    b = calc.breakdown(10000)
    assert b.taxable_income == Decimal("0.00")
    assert b.slabs == ()


def test_top_bracket():
    calc = TaxSlabCalculator()
    # taxable 1,500,000: 12500 + 100000 + 150000 = 262500; cess 10500
    b = calc.breakdown(1700000, 150000)
    assert b.taxable_income == Decimal("1500000.00")
    assert b.income_tax == Decimal("262500.00")
    assert b.total_annual_tax == Decimal("273000.00")
    assert b.monthly_tax == Decimal("22750.00")
    assert [s.rate for s in b.slabs] == [Decimal("0.0"), Decimal("0.05"), Decimal("0.2"), Decimal("0.3")]
    assert b.slabs[-1].upper is None


def test_effective_rate_percent():
    calc = TaxSlabCalculator()
    # 7800 / 600000 = 1.3%
    assert calc.effective_rate(600000) == Decimal("1.30")


def test_monotonic_in_gross():
    calc = TaxSlabCalculator()
    prev = Decimal("0")
    for gross in range(0, 3000001, 50000):
        cur = calc.monthly_tax(gross)
        assert cur >= prev
        prev = cur


def test_custom_ladder_from_config():
    ladder = TaxLadder.from_config({
        "slabs": [{"ceiling": 100000, "rate": 0}, {"ceiling": None, "rate": 0.1}],
        "cess_rate": 0,
        "standard_deduction": 0,
    })
    calc = TaxSlabCalculator(ladder)
    assert calc.breakdown(220000).total_annual_tax == Decimal("12000.00")
    assert calc.monthly_tax(220000) == Decimal("1000.00")


@pytest.mark.parametrize("cfg", [
    {"slabs": []},
    {"slabs": [{"ceiling": 100, "rate": 0.1}]},
    {"slabs": [{"ceiling": 500, "rate": 0}, {"ceiling": 200, "rate": 0.1}, {"ceiling": None, "rate": 0.2}]},
    {"slabs": [{"ceiling": None, "rate": 1.5}]},
    {"slabs": [{"ceiling": None}]},
    {"slabs": [{"ceiling": None, "rate": 0.1}], "cess_rate": -0.01},
])
def test_invalid_ladders_rejected(cfg):
    with pytest.raises(InvalidTaxConfiguration):
        TaxLadder.from_config(cfg)


def test_default_ladder_is_valid():
    ladder = TaxLadder.from_config(DEFAULT_TAX_LADDER)
    assert ladder.exemption_limit == Decimal("250000")
    assert ladder.standard_deduction == Decimal("50000")
