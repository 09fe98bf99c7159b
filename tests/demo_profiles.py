"""
Demo subject fixtures for taxengine tests — AY 2025-26

Three hand-computed subjects used by the engine and API test suites. Payloads
use the camelCase keys the upstream ITR parser produces, so every fixture also
exercises the alias handling in schemas.py.

All monetary tolerance: ±₹1 (engine rounds once, at the end).
"""
from __future__ import annotations
from typing import Any

# ---------------------------------------------------------------------------
# Subject 1: Priya, ₹12L salary, age 30, no deductions
# ---------------------------------------------------------------------------
_PRIYA_SUBJECT: dict[str, Any] = dict(
    id="priya-001",
    clientName="Priya",
    dob="1994-08-15",               # age 30 on 2025-03-31
    income=dict(salary=1_200_000),
    deductions=dict(),
    capitalGainsTransactions=[],
)
# OLD: gross=1200000, std=50000, taxable=1150000
# slab: 0+12500+100000+30%*150000=157500, no 87A, cess=6300, total=163800
# NEW: gross=1200000, std=50000, taxable=1150000
# slab: 0+20000(3-7L)+30000(7-10L)+22500(10-11.5L)=72500, cess=2900, total=75400
_PRIYA_EXPECTED: dict[str, Any] = dict(
    expected_old_tax=163_800,
    expected_new_tax=75_400,
    expected_regime="new",
    expected_savings=88_400,
)

# ---------------------------------------------------------------------------
# Subject 2: Rahul, ₹15L salary + interest, age 45, heavy old-regime deductions
# ---------------------------------------------------------------------------
_RAHUL_SUBJECT: dict[str, Any] = dict(
    id="rahul-002",
    clientName="Rahul",
    dob="1980-01-01",
    income=dict(salary=1_500_000, interestIncome=40_000),
    deductions=dict(
        section80C=200_000,         # capped to 150000
        section80D=50_000,
        section24B=200_000,
        section80CCD1B=50_000,
        section80TTA=15_000,        # capped to 10000
    ),
    capitalGainsTransactions=[],
)
# OLD: gross=1540000, ded=510000(std50+80c150+80tta10+80d50+24b200+nps50)
# taxable=1030000, slab: 12500+100000+9000=121500, cess=4860, total=126360
# NEW: ded=50000, taxable=1490000
# slab: 20000+30000+30000+20%*290000=58000 → 138000, cess=5520, total=143520
_RAHUL_EXPECTED: dict[str, Any] = dict(
    expected_old_tax=126_360,
    expected_new_tax=143_520,
    expected_regime="old",
    expected_savings=17_160,
)

# ---------------------------------------------------------------------------
# Subject 3: Meera, senior (69), interest income, capital gains portfolio
# ---------------------------------------------------------------------------
_MEERA_SUBJECT: dict[str, Any] = dict(
    id="meera-003",
    clientName="Meera",
    dob="1955-06-01",               # age 69 on 2025-03-31 → senior slabs
    income=dict(interestIncome=600_000, otherIncome=100_000),
    deductions=dict(section80TTB=60_000, section80D=50_000),
    capitalGainsTransactions=[
        # 517 days → LTCG equity 300000
        dict(id="cg-1", assetType="equity_listed", purchaseDate="2023-01-10",
             saleDate="2024-06-10", purchasePrice=500_000, salePrice=800_000, expenses=0),
        # 244 days → STCG equity 49000
        dict(id="cg-2", assetType="equity_mf", purchaseDate="2024-01-01",
             saleDate="2024-09-01", purchasePrice=100_000, salePrice=150_000, expenses=1_000),
        # > 730 days → LTCG other 950000
        dict(id="cg-3", assetType="property", purchaseDate="2015-04-01",
             saleDate="2024-12-01", purchasePrice=2_000_000, salePrice=3_000_000, expenses=50_000),
        # loss → contributes nothing
        dict(id="cg-4", assetType="equity_listed", purchaseDate="2024-02-01",
             saleDate="2024-05-01", purchasePrice=100_000, salePrice=80_000, expenses=0),
    ],
)
# CG: stcg_equity 49000*20%=9800, ltcg_equity (300000-125000)*12.5%=21875,
#     ltcg_other 950000*12.5%=118750 → 150425
# OLD: gross=700000, no salary → no std, ded=100000(80ttb50+80d50), taxable=600000
# senior slab: 0+10000+20000=30000, no 87A (gross>5L), +cg=180425, cess=7217, total=187642
# NEW: taxable=700000, slab=20000, 87A (gross<=7L) → 0, +cg=150425, cess=6017, total=156442
_MEERA_EXPECTED: dict[str, Any] = dict(
    expected_old_tax=187_642,
    expected_new_tax=156_442,
    expected_regime="new",
    expected_savings=31_200,
    expected_capital_gains_tax=150_425,
)

# ---------------------------------------------------------------------------
# Public API: single dict keyed by subject name
# ---------------------------------------------------------------------------
DEMO_PROFILES: dict[str, dict[str, Any]] = {
    "priya": {"subject": _PRIYA_SUBJECT, "expected": _PRIYA_EXPECTED},
    "rahul": {"subject": _RAHUL_SUBJECT, "expected": _RAHUL_EXPECTED},
    "meera": {"subject": _MEERA_SUBJECT, "expected": _MEERA_EXPECTED},
}

__all__ = ["DEMO_PROFILES"]
