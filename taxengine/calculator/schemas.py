"""
schemas.py — calculator Pydantic v2 data contracts.

Defines:
  - Regime, AssetClass, GainBucket, EngineVariant enums
  - Income, Deductions, CapitalGainsTransaction   (engine inputs)
  - TaxSubject                                     (client aggregate with cached totals)
  - SlabBreakdownEntry, SlabTaxResult              (slab calculator output)
  - ClassifiedGain, CapitalGainsSummary            (capital gains output)
  - TaxComputationResult, RegimeComparison         (composer / comparator output)
  - CalculateRequest                               (HTTP request body)
  - ErrorDetail, ErrorBody, ErrorResponse          (cross-cutting error envelope)

Input models accept both snake_case and the camelCase keys produced by the
upstream ITR parser (e.g. "interestIncome", "section80C", "fmv2018").

MONEY POLICY (coalesce_money):
  None / missing  → 0
  anything else   → passed through unchanged. Negative values are NOT clamped
                    here: F&O and business losses arrive as negatives and the
                    engine decides what to do with them.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def coalesce_money(value: Any) -> Any:
    """Missing money is zero. Everything else is left for Pydantic to coerce."""
    if value is None:
        return 0.0
    return value


def parse_optional_date(value: Any) -> Optional[date]:
    """
    Parse an upstream date value. Never raises.

    Accepts date / datetime objects and ISO strings ("2020-01-01" or a full
    ISO timestamp). Empty or unparseable input becomes None so the owning
    transaction is skipped instead of failing validation.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            logger.debug("Unparseable date %r treated as missing", value)
            return None
    logger.debug("Unsupported date value of type %s treated as missing", type(value).__name__)
    return None


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Regime(str, Enum):
    old = "old"
    new = "new"


class AssetClass(str, Enum):
    equity_listed = "equity_listed"
    equity_mf = "equity_mf"
    property = "property"
    unlisted_shares = "unlisted_shares"
    other = "other"


class GainBucket(str, Enum):
    stcg_equity = "stcg_equity"    # Sec 111A, listed equity / equity MF
    ltcg_equity = "ltcg_equity"    # Sec 112A, listed equity / equity MF
    stcg_other = "stcg_other"      # slab-rate STCG, not taxed by this engine
    ltcg_other = "ltcg_other"      # Sec 112, flat rate, no indexation


class EngineVariant(str, Enum):
    basic = "basic"                              # slab tax only, transactions ignored
    with_capital_gains = "with_capital_gains"    # slab tax + capital gains buckets


# ---------------------------------------------------------------------------
# Engine inputs
# ---------------------------------------------------------------------------

class Income(BaseModel):
    """
    Annual income heads in INR.

    capital_gains is the aggregate carried over from the ITR JSON for display
    only — the engine recomputes capital gains from the transaction list.
    """
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    salary: float = 0
    interest_income: float = Field(default=0, alias="interestIncome")
    other_income: float = Field(default=0, alias="otherIncome")
    capital_gains: float = Field(default=0, alias="capitalGains")
    business_income: float = Field(default=0, alias="businessIncome")
    speculation_income: float = Field(default=0, alias="speculationIncome")
    fno_income: float = Field(default=0, alias="fnoIncome")

    @field_validator("*", mode="before")
    @classmethod
    def _missing_is_zero(cls, value: Any) -> Any:
        return coalesce_money(value)


class Deductions(BaseModel):
    """Claimed Chapter VI-A / Section 24(b) amounts. Caps are applied by the engine."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    section_80c: float = Field(default=0, alias="section80C")
    section_80ccd1b: float = Field(default=0, alias="section80CCD1B")
    section_80ccd2: float = Field(default=0, alias="section80CCD2")
    section_80d: float = Field(default=0, alias="section80D")
    section_80tta: float = Field(default=0, alias="section80TTA")
    section_80ttb: float = Field(default=0, alias="section80TTB")
    section_80g: float = Field(default=0, alias="section80G")
    section_24b: float = Field(default=0, alias="section24B")

    @field_validator("*", mode="before")
    @classmethod
    def _missing_is_zero(cls, value: Any) -> Any:
        return coalesce_money(value)


class CapitalGainsTransaction(BaseModel):
    """
    One realised disposal. Frozen — tax computation never mutates it.

    purchase_date <= sale_date is assumed, not validated. A transaction with a
    missing or unparseable date contributes nothing.
    """
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    asset_type: AssetClass = Field(default=AssetClass.other, alias="assetType")
    purchase_date: Optional[date] = Field(default=None, alias="purchaseDate")
    sale_date: Optional[date] = Field(default=None, alias="saleDate")
    purchase_price: float = Field(default=0, alias="purchasePrice")
    sale_price: float = Field(default=0, alias="salePrice")
    expenses: float = 0
    fmv_2018: Optional[float] = Field(default=None, alias="fmv2018")

    @field_validator("purchase_date", "sale_date", mode="before")
    @classmethod
    def _unparseable_date_is_missing(cls, value: Any) -> Optional[date]:
        return parse_optional_date(value)

    @field_validator("purchase_price", "sale_price", "expenses", mode="before")
    @classmethod
    def _missing_is_zero(cls, value: Any) -> Any:
        return coalesce_money(value)


class TaxSubject(BaseModel):
    """
    Client aggregate as stored by the persistence layer.

    tax_old_regime / tax_new_regime are a CACHE of the engine output. They are
    overwritten by refresh_subject_totals() before every save and are never
    authoritative on their own.
    """
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    subject_id: str = Field(default_factory=lambda: str(uuid.uuid4()), alias="id")
    client_name: Optional[str] = Field(default=None, alias="clientName")
    pan: Optional[str] = None
    itr_form_type: Optional[str] = Field(default=None, alias="itrFormType")
    dob: Optional[str] = None
    assessment_year: Optional[str] = Field(default=None, alias="assessmentYear")

    income: Income = Field(default_factory=Income)
    deductions: Deductions = Field(default_factory=Deductions)
    capital_gains_transactions: List[CapitalGainsTransaction] = Field(
        default_factory=list, alias="capitalGainsTransactions",
    )

    tax_old_regime: float = Field(default=0, alias="taxOldRegime")
    tax_new_regime: float = Field(default=0, alias="taxNewRegime")


# ---------------------------------------------------------------------------
# Slab calculator output
# ---------------------------------------------------------------------------

class SlabBreakdownEntry(BaseModel):
    """Contribution of one slab to the normal-income tax."""
    model_config = ConfigDict(extra="forbid")

    range_label: str          # e.g. "₹300,000 – ₹700,000"
    taxable_amount: float     # Portion of income falling inside this slab
    rate_percent: float       # 5.0 for a 5% slab
    tax_in_slab: float


class SlabTaxResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tax: float
    breakdown: List[SlabBreakdownEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Capital gains output
# ---------------------------------------------------------------------------

class ClassifiedGain(BaseModel):
    """A transaction with a positive gain, after bucket classification."""
    model_config = ConfigDict(extra="forbid")

    transaction_id: str
    asset_type: AssetClass
    bucket: GainBucket
    holding_days: int
    cost_basis: float
    gain: float
    grandfathered: bool = False   # True when fmv_2018 stepped up the cost basis


class CapitalGainsSummary(BaseModel):
    """
    Bucket totals and bucket taxes for one transaction list.

    Rates are applied to bucket totals, never per transaction. total_tax is the
    rounded sum of the bucket taxes and is what the composer adds to slab tax.
    """
    model_config = ConfigDict(extra="forbid")

    stcg_equity: float = 0
    ltcg_equity: float = 0
    stcg_other: float = 0
    ltcg_other: float = 0

    taxable_ltcg_equity: float = 0     # ltcg_equity above the annual exemption

    tax_stcg_equity: float = 0
    tax_ltcg_equity: float = 0
    tax_stcg_other: float = 0          # Always 0: slab-rate STCG is not taxed here
    tax_ltcg_other: float = 0

    total_tax: int = 0

    gains: List[ClassifiedGain] = Field(default_factory=list)
    skipped_transaction_ids: List[str] = Field(default_factory=list)

    @property
    def total_gain(self) -> float:
        return self.stcg_equity + self.ltcg_equity + self.stcg_other + self.ltcg_other


# ---------------------------------------------------------------------------
# TaxComputationResult: full computation for one regime
# ---------------------------------------------------------------------------

class TaxComputationResult(BaseModel):
    """
    Complete tax computation for one regime.

    Computation sequence (order determines correctness):
      1. gross_total_income = salary + interest + other + business heads
      2. taxable_income_normal = gross - standard deduction - allowed deductions (>= 0)
      3. tax_on_normal_income = progressive slab tax (see slab_breakdown)
      4. rebate (87A) on slab tax only
      5. tax_after_rebate = slab tax - rebate + capital gains tax
      6. surcharge (net of marginal_relief) on tax_after_rebate
      7. tax_before_cess = tax_after_rebate + surcharge
      8. cess = 4% of tax_before_cess
      9. total_tax_liability = round(tax_before_cess + cess)
    """
    model_config = ConfigDict(extra="forbid")

    regime: Regime
    assessment_year: str
    variant: EngineVariant = EngineVariant.with_capital_gains
    age: int

    gross_total_income: float
    total_deductions: float              # Standard deduction + allowed capped deductions
    taxable_income: float                # taxable_income_normal + positive capital gains
    taxable_income_normal: float         # Slab-taxed portion only

    tax_on_normal_income: float          # Slab tax before rebate
    tax_on_stcg: float
    tax_on_ltcg: float

    rebate: float
    tax_after_rebate: float
    surcharge: float                     # Already reduced by marginal_relief
    marginal_relief: float
    tax_before_cess: float
    cess: float
    total_tax_liability: int

    slab_breakdown: List[SlabBreakdownEntry] = Field(default_factory=list)
    capital_gains: CapitalGainsSummary = Field(default_factory=CapitalGainsSummary)


# ---------------------------------------------------------------------------
# RegimeComparison: comparator output
# ---------------------------------------------------------------------------

class RegimeComparison(BaseModel):
    """Both regimes side by side. Ties recommend the new regime."""
    model_config = ConfigDict(extra="forbid")

    old_regime: TaxComputationResult
    new_regime: TaxComputationResult

    tax_old_regime: int
    tax_new_regime: int
    recommended_regime: Regime
    savings_amount: int                  # abs(tax_old_regime - tax_new_regime)
    rationale: str


# ---------------------------------------------------------------------------
# HTTP request bodies
# ---------------------------------------------------------------------------

class CalculateRequest(BaseModel):
    """Body for POST /api/calculate."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    regime: Regime
    income: Income = Field(default_factory=Income)
    deductions: Deductions = Field(default_factory=Deductions)
    capital_gains_transactions: List[CapitalGainsTransaction] = Field(
        default_factory=list, alias="capitalGainsTransactions",
    )
    dob: Optional[str] = None
    assessment_year: Optional[str] = Field(default=None, alias="assessmentYear")
    variant: EngineVariant = EngineVariant.with_capital_gains


# ---------------------------------------------------------------------------
# Error response models: used by main.py exception handlers (cross-cutting)
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single field-level validation error."""
    model_config = ConfigDict(extra="forbid")

    field: Optional[str] = None   # Dot-notation field path, e.g. "income.salary"
    issue: str


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str                     # VALIDATION_ERROR, NOT_FOUND, etc.
    message: str
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response format for all endpoints.

    Structure: {"error": {"code": "...", "message": "...", "details": [...]}}
    """
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


__all__ = [
    "coalesce_money",
    "parse_optional_date",
    "Regime",
    "AssetClass",
    "GainBucket",
    "EngineVariant",
    "Income",
    "Deductions",
    "CapitalGainsTransaction",
    "TaxSubject",
    "SlabBreakdownEntry",
    "SlabTaxResult",
    "ClassifiedGain",
    "CapitalGainsSummary",
    "TaxComputationResult",
    "RegimeComparison",
    "CalculateRequest",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
