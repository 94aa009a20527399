from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Any, Awaitable, Callable, Optional
from uuid import uuid4

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from wave_gateway.api import (
    routes_customers,
    routes_invoices,
    routes_products,
    routes_reports,
    routes_transactions,
)
from wave_gateway.core import logging as logging_utils
from wave_gateway.core.config import Settings, get_settings
from wave_gateway.core.security import require_internal_secret
from wave_gateway.schemas.wave import HealthResponse
from wave_gateway.services.business_config import find_missing_entries

RequestHandler = Callable[[Request], Awaitable[Response]]

ENVELOPE_KEYS = ("details", "inputErrors")


@asynccontextmanager
async def lifespan(_: FastAPI):
    settings = get_settings()
    logging_utils.configure_logging(settings.log_level, service_name=settings.service_name)
    logger = logging.getLogger("wave_gateway.lifespan")
    logger.info(
        "application_startup",
        extra={"version": settings.app_version},
    )
    missing = find_missing_entries(settings)
    for name, value in (
        ("INTERNAL_API_SECRET", settings.internal_api_secret),
        ("WAVE_ACCESS_TOKEN", settings.wave_access_token),
    ):
        if not value:
            missing.insert(0, name)
    if missing:
        logger.warning("configuration_incomplete", extra={"missing": missing})
    try:
        yield
    finally:
        logger.info("application_shutdown")


def _error_response(
    request: Request,
    status_code: int,
    payload: dict[str, Any],
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=payload, headers=headers)
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        response.headers["X-Request-Id"] = request_id
    return response


def build_error_payload(detail: Any) -> dict[str, Any]:
    """Render an ``HTTPException`` detail as ``{error, details?, inputErrors?}``."""
    if isinstance(detail, dict):
        payload: dict[str, Any] = {"error": str(detail.get("error") or "Request failed")}
        for key in ENVELOPE_KEYS:
            if detail.get(key) is not None:
                payload[key] = detail[key]
        return payload
    return {"error": str(detail)}


def create_app() -> FastAPI:
    app = FastAPI(
        title="Wave Gateway",
        version=get_settings().app_version,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: RequestHandler):
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        logging_utils.set_request_context(request_id=request_id)
        start = perf_counter()
        logger = logging.getLogger("wave_gateway.request")
        request.state.response_status = None
        try:
            response = await call_next(request)
            request.state.response_status = response.status_code
            response.headers["X-Request-Id"] = request_id
            return response
        except Exception:
            request.state.response_status = status.HTTP_500_INTERNAL_SERVER_ERROR
            raise
        finally:
            duration_ms = (perf_counter() - start) * 1000
            logger.info(
                "request_completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": request.state.response_status,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            logging_utils.clear_request_context()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logging.getLogger("wave_gateway.errors").error(
                "request_failed",
                extra={"status": exc.status_code, "detail": exc.detail},
            )
        return _error_response(
            request,
            exc.status_code,
            build_error_payload(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger = logging.getLogger("wave_gateway.errors")
        logger.exception(
            "unhandled_error",
            extra={"error_type": type(exc).__name__},
        )
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"error": "Internal server error"},
        )

    protected_router = APIRouter(prefix="/api", dependencies=[Depends(require_internal_secret)])

    @protected_router.get("/health", response_model=HealthResponse, summary="Health")
    async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
        return HealthResponse(ok=True, service=settings.service_name, version=settings.app_version)

    protected_router.include_router(routes_invoices.router)
    protected_router.include_router(routes_products.router)
    protected_router.include_router(routes_customers.router)
    protected_router.include_router(routes_transactions.router)
    protected_router.include_router(routes_reports.router)
    app.include_router(protected_router)

    return app


app = create_app()


def run() -> None:
    uvicorn.run(
        "wave_gateway.main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        factory=False,
    )


if __name__ == "__main__":
    run()
