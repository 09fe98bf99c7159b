"""
Capital gains classifier and taxer — Sections 111A / 112A / 112.

Pure functions. No LLM. No I/O.

Classification by (asset class, holding period in days):

  equity_listed / equity_mf   <= 365  → stcg_equity  @ stcg_equity_rate (20%)
                              >  365  → ltcg_equity  @ ltcg_equity_rate (12.5%)
                                        on the aggregate above ₹1.25L
  property / unlisted_shares  <= 730  → stcg_other   (slab-rate gain, 0% here)
                              >  730  → ltcg_other   @ ltcg_other_rate (12.5%)
  other                       <= 365  → stcg_other
                              >  365  → ltcg_other

Losses are NOT set off against gains or carried forward: a transaction whose
gain is <= 0 contributes nothing.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from taxengine.calculator.rules import DEFAULT_ASSESSMENT_YEAR, RULE_SETS, CapitalGainsRules
from taxengine.calculator.schemas import (
    AssetClass,
    CapitalGainsSummary,
    CapitalGainsTransaction,
    ClassifiedGain,
    GainBucket,
    Regime,
)

logger = logging.getLogger(__name__)

_EQUITY = (AssetClass.equity_listed, AssetClass.equity_mf)
_LONG_HOLDING = (AssetClass.property, AssetClass.unlisted_shares)


def round_rupee(amount: float) -> int:
    """Round half away from zero to the nearest rupee (₹0.50 → ₹1)."""
    if amount < 0:
        return -round_rupee(-amount)
    return int(amount + 0.5)


def _default_rules() -> CapitalGainsRules:
    return RULE_SETS[DEFAULT_ASSESSMENT_YEAR][Regime.old].capital_gains


def cost_basis(tx: CapitalGainsTransaction, rules: CapitalGainsRules) -> float:
    """
    Grandfathering: for purchases before the cutoff with an FMV snapshot,
    the cost basis is the higher of purchase price and FMV.
    """
    if (
        tx.purchase_date is not None
        and tx.purchase_date < rules.grandfathering_cutoff
        and tx.fmv_2018 is not None
    ):
        return max(tx.purchase_price, tx.fmv_2018)
    return tx.purchase_price


def _bucket_for(asset_type: AssetClass, holding_days: int, rules: CapitalGainsRules) -> GainBucket:
    if asset_type in _EQUITY:
        if holding_days <= rules.equity_holding_days:
            return GainBucket.stcg_equity
        return GainBucket.ltcg_equity
    threshold = rules.long_holding_days if asset_type in _LONG_HOLDING else rules.equity_holding_days
    if holding_days <= threshold:
        return GainBucket.stcg_other
    return GainBucket.ltcg_other


def classify_transaction(
    tx: CapitalGainsTransaction,
    rules: Optional[CapitalGainsRules] = None,
) -> Optional[ClassifiedGain]:
    """
    Classify one transaction. Returns None when it contributes nothing:
    a missing date or a gain <= 0.
    """
    rules = rules or _default_rules()
    if tx.purchase_date is None or tx.sale_date is None:
        return None

    holding_days = (tx.sale_date - tx.purchase_date).days
    basis = cost_basis(tx, rules)
    gain = tx.sale_price - basis - (tx.expenses or 0.0)
    if gain <= 0:
        return None

    return ClassifiedGain(
        transaction_id=tx.id,
        asset_type=tx.asset_type,
        bucket=_bucket_for(tx.asset_type, holding_days, rules),
        holding_days=holding_days,
        cost_basis=basis,
        gain=gain,
        grandfathered=basis != tx.purchase_price,
    )


def summarize_capital_gains(
    transactions: Iterable[CapitalGainsTransaction] = (),
    rules: Optional[CapitalGainsRules] = None,
) -> CapitalGainsSummary:
    """Aggregate gains per bucket, then apply bucket rates once per bucket."""
    rules = rules or _default_rules()
    totals = {bucket: 0.0 for bucket in GainBucket}
    gains: list[ClassifiedGain] = []
    skipped: list[str] = []

    for tx in transactions or ():
        classified = classify_transaction(tx, rules)
        if classified is None:
            if tx.purchase_date is None or tx.sale_date is None:
                logger.debug("Capital gains: transaction %s skipped (missing date)", tx.id)
                skipped.append(tx.id)
            continue
        totals[classified.bucket] += classified.gain
        gains.append(classified)

    ltcg_equity = totals[GainBucket.ltcg_equity]
    taxable_ltcg_equity = max(0.0, ltcg_equity - rules.ltcg_equity_exemption)

    tax_stcg_equity = totals[GainBucket.stcg_equity] * rules.stcg_equity_rate
    tax_ltcg_equity = taxable_ltcg_equity * rules.ltcg_equity_rate
    tax_stcg_other = totals[GainBucket.stcg_other] * rules.stcg_other_rate
    tax_ltcg_other = totals[GainBucket.ltcg_other] * rules.ltcg_other_rate

    return CapitalGainsSummary(
        stcg_equity=totals[GainBucket.stcg_equity],
        ltcg_equity=ltcg_equity,
        stcg_other=totals[GainBucket.stcg_other],
        ltcg_other=totals[GainBucket.ltcg_other],
        taxable_ltcg_equity=taxable_ltcg_equity,
        tax_stcg_equity=tax_stcg_equity,
        tax_ltcg_equity=tax_ltcg_equity,
        tax_stcg_other=tax_stcg_other,
        tax_ltcg_other=tax_ltcg_other,
        total_tax=round_rupee(tax_stcg_equity + tax_ltcg_equity + tax_stcg_other + tax_ltcg_other),
        gains=gains,
        skipped_transaction_ids=skipped,
    )


def compute_capital_gains_tax(
    transactions: Iterable[CapitalGainsTransaction] = (),
    rules: Optional[CapitalGainsRules] = None,
) -> int:
    """Total capital gains tax in whole rupees (never negative)."""
    return summarize_capital_gains(transactions, rules).total_tax
