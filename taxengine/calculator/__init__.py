"""
Tax calculator package.

    from taxengine.calculator import compute_tax, compare_regimes, Income, Regime
"""
from taxengine.calculator.capital_gains import (
    classify_transaction,
    compute_capital_gains_tax,
    summarize_capital_gains,
)
from taxengine.calculator.rules import (
    DEFAULT_ASSESSMENT_YEAR,
    RULE_SETS,
    TaxRuleSet,
    get_rule_set,
    supported_assessment_years,
)
from taxengine.calculator.schemas import (
    AssetClass,
    CapitalGainsTransaction,
    Deductions,
    EngineVariant,
    Income,
    Regime,
    RegimeComparison,
    TaxComputationResult,
    TaxSubject,
)
from taxengine.calculator.slab_tax import compute_slab_tax
from taxengine.calculator.tax_engine import (
    compare_regimes,
    compare_subject,
    compute_tax,
    compute_tax_result,
    refresh_subject_totals,
)

__all__ = [
    "classify_transaction",
    "compute_capital_gains_tax",
    "summarize_capital_gains",
    "DEFAULT_ASSESSMENT_YEAR",
    "RULE_SETS",
    "TaxRuleSet",
    "get_rule_set",
    "supported_assessment_years",
    "AssetClass",
    "CapitalGainsTransaction",
    "Deductions",
    "EngineVariant",
    "Income",
    "Regime",
    "RegimeComparison",
    "TaxComputationResult",
    "TaxSubject",
    "compute_slab_tax",
    "compare_regimes",
    "compare_subject",
    "compute_tax",
    "compute_tax_result",
    "refresh_subject_totals",
]
