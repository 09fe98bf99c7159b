"""
Calculator HTTP routes — POST /api/calculate,
                          POST /api/compare,
                          POST /api/subject/refresh,
                          GET  /api/rules/{assessment_year}

Thin wrappers over tax_engine. The engine never raises on data; request
shape errors are caught by Pydantic and surfaced by main.py's handlers.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from taxengine.calculator.rules import RULE_SETS, supported_assessment_years
from taxengine.calculator.schemas import CalculateRequest, Regime, TaxSubject
from taxengine.calculator.tax_engine import (
    compare_subject,
    compute_tax_result,
    refresh_subject_totals,
)
from taxengine.config import settings

router = APIRouter(prefix="/api", tags=["calculator"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/calculate")
async def calculate_tax(request_body: CalculateRequest) -> JSONResponse:
    """Full TaxComputationResult for one regime."""
    result = compute_tax_result(
        request_body.income,
        request_body.deductions,
        request_body.regime,
        request_body.capital_gains_transactions,
        request_body.dob,
        assessment_year=request_body.assessment_year or settings.default_assessment_year,
        variant=request_body.variant,
    )
    logger.info(
        "Tax calculated regime=%s ay=%s transactions=%d total=%d",
        result.regime.value,
        result.assessment_year,
        len(request_body.capital_gains_transactions),
        result.total_tax_liability,
    )
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/compare")
async def compare_tax(subject: TaxSubject) -> JSONResponse:
    """Both regimes for one subject, with the recommended regime and savings."""
    if subject.assessment_year is None:
        subject = subject.model_copy(update={"assessment_year": settings.default_assessment_year})
    comparison = compare_subject(subject)
    logger.info(
        "Regimes compared subject_id=%s recommended=%s savings=%d",
        subject.subject_id,
        comparison.recommended_regime.value,
        comparison.savings_amount,
    )
    return JSONResponse(status_code=200, content=comparison.model_dump(mode="json"))


@router.post("/subject/refresh")
async def refresh_subject(subject: TaxSubject) -> JSONResponse:
    """
    Recompute the cached tax_old_regime / tax_new_regime totals.
    The persistence layer calls this before every save.
    """
    if subject.assessment_year is None:
        subject = subject.model_copy(update={"assessment_year": settings.default_assessment_year})
    refreshed = refresh_subject_totals(subject)
    logger.info("Cached totals refreshed subject_id=%s", refreshed.subject_id)
    return JSONResponse(status_code=200, content=refreshed.model_dump(mode="json"))


@router.get("/rules/{assessment_year}")
async def get_rules(assessment_year: str) -> JSONResponse:
    """Rule tables for both regimes — the single source of truth for exporters."""
    rules = RULE_SETS.get(assessment_year)
    if rules is None:
        raise HTTPException(
            status_code=404,
            detail=(
                f"No tax rules for AY '{assessment_year}'. "
                f"Supported: {', '.join(supported_assessment_years())}"
            ),
        )
    return JSONResponse(
        status_code=200,
        content={
            "assessment_year": assessment_year,
            "old": rules[Regime.old].model_dump(mode="json"),
            "new": rules[Regime.new].model_dump(mode="json"),
        },
    )
