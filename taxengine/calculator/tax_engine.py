"""
Regime tax composer and comparator.
Pure Python, deterministic. Same input → same output, no I/O, no hidden state.

Order of operations (per regime):
  1. gross total income from income heads (capital gains excluded)
  2. capital gains tax from transactions — added at the end, never slab-taxed
  3. standard deduction if salary > 0
  4. age from dob as of the rule set's reference date (fallback 30)
  5/6. regime deductions → clamp >= 0 → slab tax → 87A rebate on gross income
  7. + capital gains tax
  8. surcharge above ₹50L with marginal relief
  9/10. + surcharge, + 4% cess
  11. round to the rupee

Marginal relief recomputes tax at the bracket threshold through
_tax_at_income(), never through the public API. The threshold tax is itself
relieved against the brackets below it, evaluated iteratively from the lowest
threshold up, so no call ever recurses.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional, Tuple, Union

from taxengine.calculator.capital_gains import round_rupee, summarize_capital_gains
from taxengine.calculator.rules import TaxRuleSet, get_rule_set
from taxengine.calculator.schemas import (
    CapitalGainsSummary,
    CapitalGainsTransaction,
    Deductions,
    EngineVariant,
    Income,
    Regime,
    RegimeComparison,
    SlabTaxResult,
    TaxComputationResult,
    TaxSubject,
    parse_optional_date,
)
from taxengine.calculator.slab_tax import compute_slab_tax

logger = logging.getLogger(__name__)

FALLBACK_AGE = 30


# ===========================================================================
# INTERNAL HELPERS (pure functions, no side effects, no I/O)
# ===========================================================================

def derive_age(dob: Union[str, date, None], reference_date: date) -> int:
    """
    Completed years on reference_date. Missing or unparseable dob → FALLBACK_AGE.
    """
    birth = parse_optional_date(dob)
    if birth is None:
        if dob:
            logger.debug("Invalid dob %r — using fallback age %d", dob, FALLBACK_AGE)
        return FALLBACK_AGE
    age = reference_date.year - birth.year
    if (reference_date.month, reference_date.day) < (birth.month, birth.day):
        age -= 1
    return age


def gross_total_income(income: Income) -> float:
    business = income.business_income + income.speculation_income + income.fno_income
    return income.salary + income.interest_income + income.other_income + business


def _allowed_deductions(deductions: Deductions, rules: TaxRuleSet) -> float:
    """Sum of the deductions this regime allows, each clipped at its cap."""
    total = 0.0
    for field, cap in rules.deduction_caps.items():
        claimed = getattr(deductions, field)
        total += claimed if cap is None else min(claimed, cap)
    return total


def _normal_income_tax(
    income: Income,
    deductions: Deductions,
    rules: TaxRuleSet,
    age: int,
) -> Tuple[float, float, float, SlabTaxResult, float]:
    """
    Slab side of the computation.
    Returns (gross, total_deductions, taxable_normal, slab_result, rebate).
    """
    gross = gross_total_income(income)

    total_deductions = rules.standard_deduction if income.salary > 0 else 0.0
    total_deductions += _allowed_deductions(deductions, rules)

    taxable_normal = max(0.0, gross - total_deductions)
    slab = compute_slab_tax(taxable_normal, rules.slabs_for_age(age))

    # 87A is tested against GROSS income, not taxable income
    rebate = 0.0
    if gross <= rules.rebate_87a.income_limit:
        rebate = min(slab.tax, rules.rebate_87a.max_rebate)

    return gross, total_deductions, taxable_normal, slab, rebate


def _tax_at_income(
    income: Income,
    deductions: Deductions,
    rules: TaxRuleSet,
    age: int,
    capital_gains_tax: float,
) -> float:
    """Tax before surcharge and cess: slab tax after rebate + capital gains tax."""
    _, _, _, slab, rebate = _normal_income_tax(income, deductions, rules, age)
    return slab.tax - rebate + capital_gains_tax


def _relieved_tax_at_threshold(
    income: Income,
    deductions: Deductions,
    rules: TaxRuleSet,
    age: int,
    capital_gains_tax: float,
    gross: float,
    threshold: float,
) -> float:
    """
    Tax plus surcharge, net of relief, for gross income exactly at threshold.

    Walks the brackets bottom-up: the relieved total at each lower threshold
    caps the total at the next one. One _tax_at_income() call per bracket.
    """
    total = 0.0
    prev_threshold: Optional[float] = None
    prev_rate = 0.0
    for bracket in rules.surcharge_brackets:
        if bracket.threshold > threshold:
            break
        at_threshold = income.model_copy(
            update={"salary": bracket.threshold - (gross - income.salary)}
        )
        tax = _tax_at_income(at_threshold, deductions, rules, age, capital_gains_tax)
        with_surcharge = tax * (1 + prev_rate)
        if prev_threshold is not None:
            cap = total + (bracket.threshold - prev_threshold)
            with_surcharge = max(tax, min(with_surcharge, cap))
        total, prev_threshold, prev_rate = with_surcharge, bracket.threshold, bracket.rate
    return total


def _surcharge_with_relief(
    income: Income,
    deductions: Deductions,
    rules: TaxRuleSet,
    age: int,
    capital_gains_tax: float,
    gross: float,
    tax_before_surcharge: float,
) -> Tuple[float, float]:
    """
    Returns (surcharge net of relief, marginal relief).

    Relief ensures (tax + surcharge) never exceeds the tax at the bracket
    threshold plus the income earned above that threshold. Only salary is
    moved to land gross income exactly on the threshold.
    """
    bracket = rules.surcharge_bracket_for(gross)
    if bracket is None:
        return 0.0, 0.0

    surcharge = tax_before_surcharge * bracket.rate
    tax_at_threshold = _relieved_tax_at_threshold(
        income, deductions, rules, age, capital_gains_tax, gross, bracket.threshold,
    )

    excess = (tax_before_surcharge + surcharge) - (tax_at_threshold + (gross - bracket.threshold))
    relief = min(surcharge, max(0.0, excess))
    if relief > 0:
        logger.debug(
            "Marginal relief ₹%.2f applied at %.0f%% surcharge bracket",
            relief, bracket.rate * 100,
        )
    return surcharge - relief, relief


# ===========================================================================
# REGIME COMPOSER: public API
# ===========================================================================

def compute_tax_result(
    income: Optional[Income],
    deductions: Optional[Deductions],
    regime: Regime,
    transactions: Iterable[CapitalGainsTransaction] = (),
    dob: Union[str, date, None] = None,
    *,
    assessment_year: Optional[str] = None,
    variant: EngineVariant = EngineVariant.with_capital_gains,
    rule_set: Optional[TaxRuleSet] = None,
) -> TaxComputationResult:
    """
    Full tax computation for one regime.

    rule_set overrides the (assessment_year, regime) lookup; an unknown
    assessment year falls back to the default year. Never raises on data.
    """
    rules = rule_set or get_rule_set(assessment_year, regime)
    income = income or Income()
    deductions = deductions or Deductions()

    age = derive_age(dob, rules.age_reference_date)

    if variant == EngineVariant.with_capital_gains:
        cg = summarize_capital_gains(transactions, rules.capital_gains)
    else:
        cg = CapitalGainsSummary()

    gross, total_deductions, taxable_normal, slab, rebate = _normal_income_tax(
        income, deductions, rules, age,
    )

    tax_after_rebate = slab.tax - rebate + cg.total_tax

    surcharge, relief = _surcharge_with_relief(
        income, deductions, rules, age, cg.total_tax, gross, tax_after_rebate,
    )

    tax_before_cess = tax_after_rebate + surcharge
    cess = tax_before_cess * rules.cess_rate
    total = round_rupee(tax_before_cess + cess)

    return TaxComputationResult(
        regime=rules.regime,
        assessment_year=rules.assessment_year,
        variant=variant,
        age=age,
        gross_total_income=gross,
        total_deductions=total_deductions,
        taxable_income=taxable_normal + cg.total_gain,
        taxable_income_normal=taxable_normal,
        tax_on_normal_income=round(slab.tax, 2),
        tax_on_stcg=round(cg.tax_stcg_equity + cg.tax_stcg_other, 2),
        tax_on_ltcg=round(cg.tax_ltcg_equity + cg.tax_ltcg_other, 2),
        rebate=round(rebate, 2),
        tax_after_rebate=round(tax_after_rebate, 2),
        surcharge=round(surcharge, 2),
        marginal_relief=round(relief, 2),
        tax_before_cess=round(tax_before_cess, 2),
        cess=round(cess, 2),
        total_tax_liability=total,
        slab_breakdown=slab.breakdown,
        capital_gains=cg,
    )


def compute_tax(
    income: Optional[Income],
    deductions: Optional[Deductions],
    regime: Regime,
    transactions: Iterable[CapitalGainsTransaction] = (),
    dob: Union[str, date, None] = None,
    *,
    assessment_year: Optional[str] = None,
    variant: EngineVariant = EngineVariant.with_capital_gains,
) -> int:
    """Total tax payable in whole rupees."""
    return compute_tax_result(
        income, deductions, regime, transactions, dob,
        assessment_year=assessment_year, variant=variant,
    ).total_tax_liability


# ===========================================================================
# COMPARE REGIMES: public API
# ===========================================================================

def compare_regimes(
    income: Optional[Income],
    deductions: Optional[Deductions],
    transactions: Iterable[CapitalGainsTransaction] = (),
    dob: Union[str, date, None] = None,
    *,
    assessment_year: Optional[str] = None,
    variant: EngineVariant = EngineVariant.with_capital_gains,
) -> RegimeComparison:
    """
    Run both regimes on identical inputs and recommend the cheaper one.
    Ties go to the new regime.
    """
    transactions = list(transactions or ())
    old = compute_tax_result(
        income, deductions, Regime.old, transactions, dob,
        assessment_year=assessment_year, variant=variant,
    )
    new = compute_tax_result(
        income, deductions, Regime.new, transactions, dob,
        assessment_year=assessment_year, variant=variant,
    )

    old_tax = old.total_tax_liability
    new_tax = new.total_tax_liability
    recommended = Regime.old if old_tax < new_tax else Regime.new
    savings = abs(old_tax - new_tax)

    if savings == 0:
        rationale = (
            f"Both regimes result in the same tax (₹{old_tax:,.0f}). "
            "New Regime recommended as the simpler option."
        )
    elif recommended == Regime.old:
        rationale = (
            f"Old Regime saves ₹{savings:,.0f} over the New Regime. "
            f"Old Regime tax: ₹{old_tax:,.0f} vs New Regime tax: ₹{new_tax:,.0f}. "
            f"Deductions of ₹{old.total_deductions:,.0f} outweigh the lower New Regime rates."
        )
    else:
        rationale = (
            f"New Regime saves ₹{savings:,.0f} over the Old Regime. "
            f"New Regime tax: ₹{new_tax:,.0f} vs Old Regime tax: ₹{old_tax:,.0f}. "
            f"Old Regime deductions (₹{old.total_deductions:,.0f}) "
            f"are insufficient to overcome the lower New Regime slab rates."
        )

    return RegimeComparison(
        old_regime=old,
        new_regime=new,
        tax_old_regime=old_tax,
        tax_new_regime=new_tax,
        recommended_regime=recommended,
        savings_amount=savings,
        rationale=rationale,
    )


def compare_subject(
    subject: TaxSubject,
    variant: EngineVariant = EngineVariant.with_capital_gains,
) -> RegimeComparison:
    return compare_regimes(
        subject.income,
        subject.deductions,
        subject.capital_gains_transactions,
        subject.dob,
        assessment_year=subject.assessment_year,
        variant=variant,
    )


def refresh_subject_totals(subject: TaxSubject) -> TaxSubject:
    """
    Return a copy of subject with tax_old_regime / tax_new_regime recomputed
    from its current inputs. Persisted totals are a cache; call this before
    every save.
    """
    comparison = compare_subject(subject)
    return subject.model_copy(update={
        "tax_old_regime": comparison.tax_old_regime,
        "tax_new_regime": comparison.tax_new_regime,
    })


__all__ = [
    "FALLBACK_AGE",
    "derive_age",
    "gross_total_income",
    "compute_tax_result",
    "compute_tax",
    "compare_regimes",
    "compare_subject",
    "refresh_subject_totals",
]
