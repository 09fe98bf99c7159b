"""
main.py — taxengine FastAPI application entry point.

Start with: uvicorn taxengine.main:app --reload --port 8000
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taxengine.calculator.rules import supported_assessment_years
from taxengine.calculator.schemas import ErrorBody, ErrorDetail, ErrorResponse
from taxengine.config import settings

# ---------------------------------------------------------------------------
# Logging: configured before anything else
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: startup & shutdown hooks
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    years = supported_assessment_years()
    if settings.default_assessment_year not in years:
        logger.warning(
            "DEFAULT_ASSESSMENT_YEAR=%s has no rule set — requests will fall back. Supported: %s",
            settings.default_assessment_year, ", ".join(years),
        )
    logger.info("taxengine v%s starting up (AY rule sets: %s)", settings.app_version, ", ".join(years))
    yield
    logger.info("taxengine shutting down")


# ---------------------------------------------------------------------------
# FastAPI application instance
# ---------------------------------------------------------------------------
app = FastAPI(
    title="taxengine API",
    version=settings.app_version,
    description=(
        "Indian income tax computation engine. Computes Old and New regime "
        "liability with capital gains, 87A rebate, surcharge with marginal relief and cess."
    ),
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# ---------------------------------------------------------------------------
# CORS middleware: restricted to frontend origins from settings
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error response helper
# ---------------------------------------------------------------------------
def _make_error_response(
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None,
    status_code: int = 500,
) -> JSONResponse:
    """Build a standard {error: {code, message, details}} response."""
    body = ErrorResponse(
        error=ErrorBody(
            code=code,
            message=message,
            details=[ErrorDetail(**d) for d in details or []],
        )
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


# ---------------------------------------------------------------------------
# Global exception handlers: registered BEFORE routers
# ---------------------------------------------------------------------------
# The engine never raises on data, so only request shape, routing and genuine
# bugs reach these handlers.
_HTTP_ERROR_CODES = {
    404: "NOT_FOUND",              # unknown route or AY without a rule set
    405: "METHOD_NOT_ALLOWED",     # e.g. GET /api/calculate
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Malformed CalculateRequest / TaxSubject bodies: unknown regime or asset
    class, extra keys, non-numeric money. Every violation is listed, keyed by
    the path the client sent (camelCase aliases included).
    """
    details = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        details.append({"field": field or None, "issue": error["msg"]})
    return _make_error_response(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        details=details,
        status_code=422,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code = _HTTP_ERROR_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
    return _make_error_response(
        code=code,
        message=str(exc.detail),
        status_code=exc.status_code,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Anything else is a bug in the engine or the rule tables. The traceback is
    logged; the client sees the exception text only when DEBUG is on.
    """
    logger.error(
        "Tax computation failed on %s %s",
        request.method,
        request.url.path,
        exc_info=True,
    )
    details = [{"issue": f"{type(exc).__name__}: {exc}"}] if settings.debug else []
    return _make_error_response(
        code="INTERNAL_ERROR",
        message="Tax computation failed",
        details=details,
        status_code=500,
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------
@app.get("/api/health", tags=["System"])
async def health_check() -> dict:
    return {
        "status": "ok",
        "version": settings.app_version,
        "default_assessment_year": settings.default_assessment_year,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from taxengine.calculator.routes import router as calculator_router  # noqa: E402

app.include_router(calculator_router)
