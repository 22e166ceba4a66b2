"""
Progressive income-tax ladder (TDS).

Pure: a calculator is built from static configuration and every method is a
function of its arguments. Rates in the configuration are fractions
(0.05 == 5%), amounts are annual.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from .compensation_errors import InvalidTaxConfiguration
from .money import HUNDRED, MONTHS_PER_YEAR, ZERO, round_money, to_decimal

# Old regime, FY 2024-25
DEFAULT_TAX_LADDER = {
    "slabs": [
        {"ceiling": 250000, "rate": 0.0},
        {"ceiling": 500000, "rate": 0.05},
        {"ceiling": 1000000, "rate": 0.20},
        {"ceiling": None, "rate": 0.30},
    ],
    "cess_rate": 0.04,              # health & education cess on the ladder tax
    "standard_deduction": 50000,
    "assumed_other_deductions": 150000,   # 80C assumption when nothing is declared
}


@dataclass(frozen=True)
class TaxSlab:
    ceiling: Optional[Decimal]   # None = unbounded top bracket
    rate: Decimal


@dataclass(frozen=True)
class SlabTax:
    lower: Decimal
    upper: Optional[Decimal]
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal

    def to_dict(self):
        return {
            "lower": float(self.lower),
            "upper": float(self.upper) if self.upper is not None else None,
            "rate": float(self.rate),
            "taxable_amount": float(round_money(self.taxable_amount)),
            "tax": float(round_money(self.tax)),
        }


@dataclass(frozen=True)
class TaxBreakdown:
    annual_gross: Decimal
    standard_deduction: Decimal
    other_deductions: Decimal
    taxable_income: Decimal
    income_tax: Decimal
    cess: Decimal
    total_annual_tax: Decimal
    monthly_tax: Decimal
    effective_rate: Decimal
    slabs: Tuple[SlabTax, ...] = ()

    def to_dict(self):
        return {
            "annual_gross": float(self.annual_gross),
            "standard_deduction": float(self.standard_deduction),
            "other_deductions": float(self.other_deductions),
            "taxable_income": float(self.taxable_income),
            "income_tax": float(self.income_tax),
            "cess": float(self.cess),
            "total_annual_tax": float(self.total_annual_tax),
            "monthly_tax": float(self.monthly_tax),
            "effective_rate": float(self.effective_rate),
            "slabs": [s.to_dict() for s in self.slabs],
        }


@dataclass(frozen=True)
class TaxLadder:
    slabs: Tuple[TaxSlab, ...]
    cess_rate: Decimal
    standard_deduction: Decimal
    assumed_other_deductions: Decimal = ZERO

    @classmethod
    def from_config(cls, cfg: Optional[dict] = None) -> "TaxLadder":
        cfg = cfg or DEFAULT_TAX_LADDER
        try:
            slabs = tuple(
                TaxSlab(ceiling=to_decimal(s.get("ceiling")), rate=to_decimal(s["rate"]))
                for s in cfg["slabs"]
            )
            ladder = cls(
                slabs=slabs,
                cess_rate=to_decimal(cfg.get("cess_rate", 0)),
                standard_deduction=to_decimal(cfg.get("standard_deduction", 0)),
                assumed_other_deductions=to_decimal(cfg.get("assumed_other_deductions", 0)),
            )
        except (KeyError, TypeError, ArithmeticError) as e:
            raise InvalidTaxConfiguration(f"Malformed tax ladder configuration: {e}")
        ladder.validate()
        return ladder

    def validate(self) -> None:
        if not self.slabs:
            raise InvalidTaxConfiguration("Tax ladder needs at least one slab")
        if self.slabs[-1].ceiling is not None:
            raise InvalidTaxConfiguration("Top tax slab must have no ceiling")
        previous = ZERO
        for slab in self.slabs[:-1]:
            if slab.ceiling is None or slab.ceiling <= previous:
                raise InvalidTaxConfiguration("Tax slab ceilings must be strictly increasing")
            previous = slab.ceiling
        for slab in self.slabs:
            if slab.rate < 0 or slab.rate > 1:
                raise InvalidTaxConfiguration("Tax slab rates must be fractions between 0 and 1")
        if self.cess_rate < 0:
            raise InvalidTaxConfiguration("cess_rate must not be negative")
        if self.standard_deduction < 0 or self.assumed_other_deductions < 0:
            raise InvalidTaxConfiguration("Deductions must not be negative")

    @property
    def exemption_limit(self) -> Optional[Decimal]:
        return self.slabs[0].ceiling


class TaxSlabCalculator:
    def __init__(self, ladder: Optional[TaxLadder] = None):
        self.ladder = ladder or TaxLadder.from_config()

    def taxable_income(self, annual_gross, annual_other_deductions) -> Decimal:
        taxable = to_decimal(annual_gross) - self.ladder.standard_deduction - to_decimal(annual_other_deductions)
        return max(taxable, ZERO)

    def ladder_tax(self, taxable_income: Decimal) -> Tuple[Decimal, Tuple[SlabTax, ...]]:
        """Sum of (min(taxable, ceiling) - previous ceiling) * rate over the reached brackets."""
        limit = self.ladder.exemption_limit
        if limit is not None and taxable_income <= limit:
            return ZERO, ()

        total = ZERO
        rows = []
        lower = ZERO
        for slab in self.ladder.slabs:
            if taxable_income <= lower:
                break
            upper = taxable_income if slab.ceiling is None else min(taxable_income, slab.ceiling)
            portion = upper - lower
            tax = portion * slab.rate
            rows.append(SlabTax(lower=lower, upper=slab.ceiling, rate=slab.rate, taxable_amount=portion, tax=tax))
            total += tax
            if slab.ceiling is None:
                break
            lower = slab.ceiling
        return total, tuple(rows)

    def breakdown(self, annual_gross, annual_other_deductions=None) -> TaxBreakdown:
        gross = to_decimal(annual_gross)
        other = (self.ladder.assumed_other_deductions if annual_other_deductions is None
                 else to_decimal(annual_other_deductions))
        taxable = self.taxable_income(gross, other)
        income_tax, rows = self.ladder_tax(taxable)
        cess = income_tax * self.ladder.cess_rate
        total = income_tax + cess
        effective = round_money(total / gross * HUNDRED) if gross > 0 else ZERO
        return TaxBreakdown(
            annual_gross=round_money(gross),
            standard_deduction=round_money(self.ladder.standard_deduction),
            other_deductions=round_money(other),
            taxable_income=round_money(taxable),
            income_tax=round_money(income_tax),
            cess=round_money(cess),
            total_annual_tax=round_money(total),
            monthly_tax=round_money(total / MONTHS_PER_YEAR),
            effective_rate=effective,
            slabs=rows,
        )

    def monthly_tax(self, annual_gross, annual_other_deductions=None) -> Decimal:
        """Monthly TDS for an annualized gross; omitted deductions use the configured assumption."""
        return self.breakdown(annual_gross, annual_other_deductions).monthly_tax

    def monthly_tax_from_salary(self, monthly_salary) -> Decimal:
        return self.monthly_tax(to_decimal(monthly_salary) * MONTHS_PER_YEAR)

    def effective_rate(self, annual_gross) -> Decimal:
        return self.breakdown(annual_gross).effective_rate
