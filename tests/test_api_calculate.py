"""
End-to-end API tests — AY 2025-26

Tests the full stack: HTTP request → schema validation → tax engine → HTTP
response, through httpx's ASGI transport (no live server needed).

Expected values are the hand-computed figures from demo_profiles.py.
Tolerance: ±₹1 on all monetary assertions (consistent with test_tax_engine.py).
"""
from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from taxengine.main import app
from tests.demo_profiles import DEMO_PROFILES


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client():
    """Async httpx client using ASGI transport — no live server needed."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


def _calculate_body(name: str, regime: str) -> dict:
    subject = DEMO_PROFILES[name]["subject"]
    return {
        "regime": regime,
        "income": subject["income"],
        "deductions": subject["deductions"],
        "capitalGainsTransactions": subject["capitalGainsTransactions"],
        "dob": subject["dob"],
    }


# ---------------------------------------------------------------------------
# Test Group 1: POST /api/calculate
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["priya", "rahul", "meera"])
@pytest.mark.parametrize("regime", ["old", "new"])
async def test_calculate_demo_profiles(client: AsyncClient, name: str, regime: str) -> None:
    expected = DEMO_PROFILES[name]["expected"][f"expected_{regime}_tax"]

    response = await client.post("/api/calculate", json=_calculate_body(name, regime))
    assert response.status_code == 200, (
        f"{name}: Expected 200, got {response.status_code}. Body: {response.text}"
    )

    result = response.json()
    assert result["regime"] == regime
    assert result["assessment_year"] == "2025-26"
    assert abs(result["total_tax_liability"] - expected) <= 1, (
        f"{name}/{regime}: expected ₹{expected:,.0f}, got ₹{result['total_tax_liability']:,.0f}"
    )
    assert isinstance(result["slab_breakdown"], list)


@pytest.mark.asyncio
async def test_calculate_returns_full_breakdown(client: AsyncClient) -> None:
    response = await client.post("/api/calculate", json=_calculate_body("meera", "old"))
    result = response.json()

    assert result["age"] == 69
    assert result["capital_gains"]["total_tax"] == 150_425
    assert result["capital_gains"]["skipped_transaction_ids"] == []
    for key in (
        "gross_total_income", "total_deductions", "taxable_income", "tax_on_normal_income",
        "tax_on_stcg", "tax_on_ltcg", "rebate", "surcharge", "marginal_relief", "cess",
    ):
        assert key in result, f"{key} missing from response"


@pytest.mark.asyncio
async def test_calculate_basic_variant(client: AsyncClient) -> None:
    body = {**_calculate_body("meera", "old"), "variant": "basic"}
    response = await client.post("/api/calculate", json=body)
    assert response.status_code == 200
    assert response.json()["total_tax_liability"] == 31_200


@pytest.mark.asyncio
async def test_calculate_unknown_assessment_year_falls_back(client: AsyncClient) -> None:
    body = {**_calculate_body("priya", "new"), "assessmentYear": "1999-00"}
    response = await client.post("/api/calculate", json=body)
    assert response.status_code == 200
    result = response.json()
    assert result["assessment_year"] == "2025-26"
    assert result["total_tax_liability"] == 75_400


@pytest.mark.asyncio
async def test_calculate_null_money_fields_are_zero(client: AsyncClient) -> None:
    body = {"regime": "new", "income": {"salary": 1_200_000, "interestIncome": None}}
    response = await client.post("/api/calculate", json=body)
    assert response.status_code == 200
    assert response.json()["total_tax_liability"] == 75_400


@pytest.mark.asyncio
async def test_calculate_invalid_regime_validation_error(client: AsyncClient) -> None:
    response = await client.post("/api/calculate", json={"regime": "flat", "income": {"salary": 1}})
    assert response.status_code == 422
    body = response.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    fields = {d["field"] for d in body["error"]["details"]}
    assert "regime" in fields, f"Expected regime in details: {body}"


@pytest.mark.asyncio
async def test_calculate_multiple_violations_in_one_response(client: AsyncClient) -> None:
    body = {
        "regime": "new",
        "income": {"salary": 1_000_000, "bonus": 5_000},
        "capitalGainsTransactions": [{"assetType": "crypto"}],
    }
    response = await client.post("/api/calculate", json=body)
    assert response.status_code == 422
    fields = {d["field"] for d in response.json()["error"]["details"]}
    assert "income.bonus" in fields
    assert "capitalGainsTransactions.0.assetType" in fields


# ---------------------------------------------------------------------------
# Test Group 2: POST /api/compare and POST /api/subject/refresh
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["priya", "rahul", "meera"])
async def test_compare_demo_profiles(client: AsyncClient, name: str) -> None:
    data = DEMO_PROFILES[name]
    expected = data["expected"]

    response = await client.post("/api/compare", json=data["subject"])
    assert response.status_code == 200, response.text

    result = response.json()
    assert result["recommended_regime"] == expected["expected_regime"]
    assert abs(result["tax_old_regime"] - expected["expected_old_tax"]) <= 1
    assert abs(result["tax_new_regime"] - expected["expected_new_tax"]) <= 1
    assert abs(result["savings_amount"] - expected["expected_savings"]) <= 1
    assert isinstance(result.get("rationale"), str) and len(result["rationale"]) > 10
    assert result["old_regime"]["regime"] == "old"
    assert result["new_regime"]["regime"] == "new"


@pytest.mark.asyncio
async def test_subject_refresh_overwrites_cached_totals(client: AsyncClient) -> None:
    subject = {**DEMO_PROFILES["rahul"]["subject"], "taxOldRegime": 0, "taxNewRegime": 999}

    response = await client.post("/api/subject/refresh", json=subject)
    assert response.status_code == 200, response.text

    result = response.json()
    assert result["subject_id"] == "rahul-002"
    assert result["assessment_year"] == "2025-26"
    assert result["tax_old_regime"] == 126_360
    assert result["tax_new_regime"] == 143_520


# ---------------------------------------------------------------------------
# Test Group 3: GET /api/rules/{assessment_year}
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_rules_known_year(client: AsyncClient) -> None:
    response = await client.get("/api/rules/2025-26")
    assert response.status_code == 200

    body = response.json()
    assert body["assessment_year"] == "2025-26"
    assert body["new"]["slabs"][1] == {"upper_bound": 700_000, "rate": 0.05}
    assert body["new"]["slabs"][-1]["upper_bound"] is None
    assert body["old"]["rebate_87a"]["income_limit"] == 500_000
    assert body["old"]["senior_slabs"] is not None


@pytest.mark.asyncio
async def test_rules_unknown_year_not_found(client: AsyncClient) -> None:
    response = await client.get("/api/rules/1999-00")
    assert response.status_code == 404
    body = response.json()
    assert body["error"]["code"] == "NOT_FOUND", f"Expected NOT_FOUND: {body}"
    assert "2025-26" in body["error"]["message"]


# ---------------------------------------------------------------------------
# Test Group 4: System
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["default_assessment_year"] == "2025-26"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/nope")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_wrong_method_uses_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/calculate")
    assert response.status_code == 405
    assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"


@pytest.mark.asyncio
async def test_engine_failure_returns_internal_error(monkeypatch) -> None:
    """An unexpected exception becomes a 500 envelope without leaking details."""
    def _broken(*args, **kwargs):
        raise RuntimeError("slab table corrupted")

    monkeypatch.setattr("taxengine.calculator.routes.compute_tax_result", _broken)

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        response = await ac.post("/api/calculate", json=_calculate_body("priya", "new"))

    assert response.status_code == 500
    body = response.json()
    assert body["error"]["code"] == "INTERNAL_ERROR"
    assert body["error"]["details"] == []
