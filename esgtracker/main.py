"""
main.py — ESG Tracker API application.

    uvicorn esgtracker.main:app --reload --port 8000

Every non-2xx answer uses the ErrorResponse envelope from
questionnaire/schemas.py:
    400 BAD_REQUEST       body is not JSON or does not match the request model
    401/404/409/...       HTTPException raised by a route, code from _STATUS_CODES
    422 VALIDATION_ERROR  questionnaire rule violations (built in questionnaire/routes.py)
    500 INTERNAL_ERROR    anything else; traceback goes to the log only
"""
import logging
import subprocess
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from esgtracker.config import settings
from esgtracker.database import async_engine
from esgtracker.questionnaire.schemas import ErrorBody, ErrorDetail, ErrorResponse

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

_PACKAGE_DIR = Path(__file__).resolve().parent

_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
}


def run_migrations() -> None:
    """`alembic upgrade head` against settings.database_url. Raises RuntimeError if it fails."""
    completed = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=_PACKAGE_DIR,
        capture_output=True,
        text=True,
    )
    if completed.returncode != 0:
        logger.error("Migrations failed:\n%s", completed.stderr)
        raise RuntimeError(f"Alembic upgrade failed: {completed.stderr}")
    logger.info("Migrations applied: %s", completed.stdout.strip() or "already at head")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.run_migrations:
        run_migrations()
    logger.info("ESG Tracker v%s ready", settings.app_version)
    yield
    await async_engine.dispose()
    logger.info("ESG Tracker stopped")


app = FastAPI(
    title="ESG Tracker API",
    version=settings.app_version,
    description=(
        "Yearly ESG questionnaire: environmental, social and governance answers "
        "per financial year, derived sustainability ratios, dashboards and PDF export."
    ),
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[list[ErrorDetail]] = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details or []))
    return JSONResponse(status_code=status_code, content=body.model_dump())


# Handlers are registered before the routers are included
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Structural problems are a 400; one detail per problem, path without the 'body' prefix."""
    details = [
        ErrorDetail(
            field=".".join(str(part) for part in err["loc"] if part != "body") or None,
            issue=err["msg"],
        )
        for err in exc.errors()
    ]
    logger.info("Malformed request on %s: %d problem(s)", request.url.path, len(details))
    return error_response(400, "BAD_REQUEST", "Request body is malformed", details)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _STATUS_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
    return error_response(exc.status_code, code, str(exc.detail))


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500. With DEBUG on, the exception type and text are returned as one detail."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=True)
    if not settings.debug:
        return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")
    return error_response(
        500,
        "INTERNAL_ERROR",
        "An unexpected error occurred (debug details included)",
        [ErrorDetail(issue=f"{type(exc).__name__}: {exc}")],
    )


@app.get("/api/health", tags=["System"])
async def health() -> dict:
    return {
        "status": "ok",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


from esgtracker.auth.routes import router as auth_router  # noqa: E402
from esgtracker.questionnaire.routes import router as questionnaire_router  # noqa: E402
from esgtracker.reports.routes import router as reports_router  # noqa: E402

app.include_router(auth_router)
app.include_router(questionnaire_router)
app.include_router(reports_router)
