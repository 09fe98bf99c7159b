"""
Progressive slab tax — pure function, no I/O.
"""
from __future__ import annotations

import math
from typing import Sequence

from taxengine.calculator.rules import SlabRule
from taxengine.calculator.schemas import SlabBreakdownEntry, SlabTaxResult


def _range_label(lower: float, upper: float) -> str:
    if math.isinf(upper):
        return f"Above ₹{lower:,.0f}"
    return f"₹{lower:,.0f} – ₹{upper:,.0f}"


def compute_slab_tax(amount: float, slabs: Sequence[SlabRule]) -> SlabTaxResult:
    """
    Apply a marginal-rate table to amount.

    Slabs must be in ascending upper_bound order with the unbounded slab last;
    that is the caller's contract and is not checked here. Breakdown entries are
    emitted in slab order and stop at the first slab that exhausts the amount,
    so sum(entry.taxable_amount) == amount for any amount >= 0.
    """
    tax = 0.0
    breakdown: list[SlabBreakdownEntry] = []
    remaining = amount
    prev_ceiling = 0.0

    for slab in slabs:
        if remaining <= 0:
            break
        ceiling = math.inf if slab.upper_bound is None else slab.upper_bound
        in_slab = min(remaining, ceiling - prev_ceiling)
        slab_tax = in_slab * slab.rate
        tax += slab_tax
        breakdown.append(SlabBreakdownEntry(
            range_label=_range_label(prev_ceiling, ceiling),
            taxable_amount=in_slab,
            rate_percent=round(slab.rate * 100, 2),
            tax_in_slab=slab_tax,
        ))
        remaining -= in_slab
        prev_ceiling = ceiling

    return SlabTaxResult(tax=tax, breakdown=breakdown)
