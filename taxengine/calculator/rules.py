"""
Versioned tax rule sets — AY 2022-23 through AY 2025-26.

Every number the engine uses lives here, in frozen TaxRuleSet objects keyed by
(assessment_year, regime). Nothing in this module is mutable at runtime, so
several assessment years can be computed side by side.

IMPORTANT: AY 2025-26 (FY 2024-25) new-regime slabs are the post-Budget-2024
breakpoints 3L/7L/10L/12L/15L with 87A rebate ₹25,000 up to ₹7L. The
Budget-2025 breakpoints (4L/8L/12L/16L/20L/24L) belong to AY 2026-27 and are
NOT in this table.
"""
from __future__ import annotations

import logging
from datetime import date
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from taxengine.calculator.schemas import Regime

logger = logging.getLogger(__name__)

DEFAULT_ASSESSMENT_YEAR = "2025-26"


# ===========================================================================
# RULE MODELS
# ===========================================================================

class SlabRule(BaseModel):
    """One bracket. upper_bound=None marks the unbounded top slab."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    upper_bound: Optional[float]
    rate: float


class RebateRule(BaseModel):
    """Section 87A: up to max_rebate off slab tax when gross income <= income_limit."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    income_limit: float
    max_rebate: float


class SurchargeBracket(BaseModel):
    """Surcharge rate applied when gross income is strictly above threshold."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    threshold: float
    rate: float


class CapitalGainsRules(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    stcg_equity_rate: float            # Sec 111A
    ltcg_equity_rate: float            # Sec 112A
    ltcg_equity_exemption: float       # Once per computation, on the aggregate bucket
    ltcg_other_rate: float             # Sec 112, no indexation
    stcg_other_rate: float = 0.0       # Slab-rate STCG, not taxed by this engine
    equity_holding_days: int = 365     # <= this → short term (equity and "other" assets)
    long_holding_days: int = 730       # <= this → short term (property, unlisted shares)
    grandfathering_cutoff: date = date(2018, 1, 31)


class TaxRuleSet(BaseModel):
    """
    Complete rule table for one assessment year and one regime.

    deduction_caps lists the Deductions fields the regime allows. A cap of None
    means the claimed amount is taken as-is. Fields not listed are ignored.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    assessment_year: str
    regime: Regime
    slabs: Tuple[SlabRule, ...]
    senior_slabs: Optional[Tuple[SlabRule, ...]] = None          # age 60–79
    super_senior_slabs: Optional[Tuple[SlabRule, ...]] = None    # age 80+
    standard_deduction: float
    rebate_87a: RebateRule
    cess_rate: float
    surcharge_brackets: Tuple[SurchargeBracket, ...]
    capital_gains: CapitalGainsRules
    deduction_caps: Dict[str, Optional[float]]
    age_reference_date: date             # Age is derived as of this date
    presumptive_allowed: bool = True

    def slabs_for_age(self, age: int) -> Tuple[SlabRule, ...]:
        """Old regime picks the table by age; new regime has a single table."""
        if age >= 80 and self.super_senior_slabs:
            return self.super_senior_slabs
        if age >= 60 and self.senior_slabs:
            return self.senior_slabs
        return self.slabs

    def surcharge_bracket_for(self, gross_income: float) -> Optional[SurchargeBracket]:
        """Highest bracket whose threshold the income exceeds, or None."""
        applicable = None
        for bracket in self.surcharge_brackets:
            if gross_income > bracket.threshold:
                applicable = bracket
        return applicable


# ===========================================================================
# SHARED TABLES
# ===========================================================================

def _slabs(*pairs: Tuple[Optional[float], float]) -> Tuple[SlabRule, ...]:
    return tuple(SlabRule(upper_bound=upper, rate=rate) for upper, rate in pairs)


OLD_REGIME_SLABS = _slabs(
    (250_000,   0.00),   # 0–2.5L: 0%
    (500_000,   0.05),   # 2.5–5L: 5%
    (1_000_000, 0.20),   # 5–10L: 20%
    (None,      0.30),   # >10L: 30%
)

OLD_REGIME_SENIOR_SLABS = _slabs(
    (300_000,   0.00),   # 0–3L: 0%
    (500_000,   0.05),
    (1_000_000, 0.20),
    (None,      0.30),
)

OLD_REGIME_SUPER_SENIOR_SLABS = _slabs(
    (500_000,   0.00),   # 0–5L: 0%
    (1_000_000, 0.20),
    (None,      0.30),
)

# New regime before Budget 2023 (AY 2022-23)
NEW_REGIME_SLABS_2022 = _slabs(
    (250_000,   0.00),
    (500_000,   0.05),
    (750_000,   0.10),
    (1_000_000, 0.15),
    (1_250_000, 0.20),
    (1_500_000, 0.25),
    (None,      0.30),
)

# Budget 2023 (AY 2023-24, AY 2024-25)
NEW_REGIME_SLABS_2023 = _slabs(
    (300_000,   0.00),
    (600_000,   0.05),
    (900_000,   0.10),
    (1_200_000, 0.15),
    (1_500_000, 0.20),
    (None,      0.30),
)

# Budget 2024 (AY 2025-26)
NEW_REGIME_SLABS_2025 = _slabs(
    (300_000,   0.00),   # 0–3L: 0%
    (700_000,   0.05),   # 3–7L: 5%
    (1_000_000, 0.10),   # 7–10L: 10%
    (1_200_000, 0.15),   # 10–12L: 15%
    (1_500_000, 0.20),   # 12–15L: 20%
    (None,      0.30),   # >15L: 30%
)

SURCHARGE_BRACKETS: Tuple[SurchargeBracket, ...] = (
    SurchargeBracket(threshold=5_000_000,  rate=0.10),   # 50L–1Cr
    SurchargeBracket(threshold=10_000_000, rate=0.15),   # 1Cr–2Cr
    SurchargeBracket(threshold=20_000_000, rate=0.25),   # 2Cr–5Cr
    SurchargeBracket(threshold=50_000_000, rate=0.37),   # >5Cr
)

STANDARD_DEDUCTION = 50_000
CESS_RATE = 0.04

OLD_87A = RebateRule(income_limit=500_000, max_rebate=12_500)
NEW_87A_2022 = RebateRule(income_limit=500_000, max_rebate=12_500)
NEW_87A = RebateRule(income_limit=700_000, max_rebate=25_000)

CG_RULES_PRE_2024 = CapitalGainsRules(
    stcg_equity_rate=0.15,
    ltcg_equity_rate=0.10,
    ltcg_equity_exemption=100_000,
    ltcg_other_rate=0.10,
)

CG_RULES_2025 = CapitalGainsRules(
    stcg_equity_rate=0.20,
    ltcg_equity_rate=0.125,
    ltcg_equity_exemption=125_000,
    ltcg_other_rate=0.125,
)

OLD_DEDUCTION_CAPS: Dict[str, Optional[float]] = {
    "section_80c":     150_000,
    "section_80tta":   10_000,
    "section_80ttb":   50_000,
    "section_80d":     None,
    "section_24b":     None,
    "section_80ccd1b": None,
    "section_80ccd2":  None,
    "section_80g":     None,
}

NEW_DEDUCTION_CAPS: Dict[str, Optional[float]] = {
    "section_80ccd2": None,   # Employer NPS only
}


def _reference_date(assessment_year: str) -> date:
    """End of the previous year for AY "2025-26" → 2025-03-31."""
    return date(int(assessment_year.split("-")[0]), 3, 31)


def _build(
    assessment_year: str,
    new_slabs: Tuple[SlabRule, ...],
    new_rebate: RebateRule,
    cg_rules: CapitalGainsRules,
) -> Dict[Regime, TaxRuleSet]:
    common = dict(
        assessment_year=assessment_year,
        standard_deduction=STANDARD_DEDUCTION,
        cess_rate=CESS_RATE,
        surcharge_brackets=SURCHARGE_BRACKETS,
        capital_gains=cg_rules,
        age_reference_date=_reference_date(assessment_year),
    )
    return {
        Regime.old: TaxRuleSet(
            regime=Regime.old,
            slabs=OLD_REGIME_SLABS,
            senior_slabs=OLD_REGIME_SENIOR_SLABS,
            super_senior_slabs=OLD_REGIME_SUPER_SENIOR_SLABS,
            rebate_87a=OLD_87A,
            deduction_caps=OLD_DEDUCTION_CAPS,
            **common,
        ),
        Regime.new: TaxRuleSet(
            regime=Regime.new,
            slabs=new_slabs,
            rebate_87a=new_rebate,
            deduction_caps=NEW_DEDUCTION_CAPS,
            **common,
        ),
    }


# ===========================================================================
# RULE SET REGISTRY
# ===========================================================================

RULE_SETS: Mapping[str, Mapping[Regime, TaxRuleSet]] = MappingProxyType({
    "2022-23": MappingProxyType(_build("2022-23", NEW_REGIME_SLABS_2022, NEW_87A_2022, CG_RULES_PRE_2024)),
    "2023-24": MappingProxyType(_build("2023-24", NEW_REGIME_SLABS_2023, NEW_87A, CG_RULES_PRE_2024)),
    "2024-25": MappingProxyType(_build("2024-25", NEW_REGIME_SLABS_2023, NEW_87A, CG_RULES_PRE_2024)),
    "2025-26": MappingProxyType(_build("2025-26", NEW_REGIME_SLABS_2025, NEW_87A, CG_RULES_2025)),
})


def supported_assessment_years() -> list[str]:
    return sorted(RULE_SETS)


def get_rule_set(assessment_year: Optional[str], regime: Regime) -> TaxRuleSet:
    """
    Look up the rule set for (assessment_year, regime).

    A miss never raises: it falls back to DEFAULT_ASSESSMENT_YEAR and logs a
    warning, so a bad AY from upstream still yields a number.
    """
    rules = RULE_SETS.get(assessment_year or DEFAULT_ASSESSMENT_YEAR)
    if rules is None:
        logger.warning(
            "No tax rules for AY %s — falling back to AY %s",
            assessment_year, DEFAULT_ASSESSMENT_YEAR,
        )
        rules = RULE_SETS[DEFAULT_ASSESSMENT_YEAR]
    return rules[Regime(regime)]


__all__ = [
    "DEFAULT_ASSESSMENT_YEAR",
    "SlabRule",
    "RebateRule",
    "SurchargeBracket",
    "CapitalGainsRules",
    "TaxRuleSet",
    "RULE_SETS",
    "supported_assessment_years",
    "get_rule_set",
]
