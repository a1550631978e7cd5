from __future__ import annotations

import logging
import time
import uuid
from collections import defaultdict, deque
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse

from quote_gateway.config.settings import settings
from quote_gateway.exceptions import DataError
from quote_gateway.internal_metrics import MetricsCollector
from quote_gateway.providers.nasdaq_adapter import NasdaqAdapter
from quote_gateway.providers.yahoo_adapter import YahooAdapter
from quote_gateway.schemas.quote import DetailedQuoteSchema
from quote_gateway.services.quote_service import QuoteService
from quote_gateway.utils.symbol_normalizer import normalize_symbol

logger = logging.getLogger(__name__)
router = APIRouter()

metrics = MetricsCollector()
quote_service = QuoteService(YahooAdapter(), NasdaqAdapter(), metrics=metrics)

FALLBACK_HEADER = "x-quote-fallback"
PATCHED_HEADER = "x-quote-patched-fields"

_request_buckets: dict[str, deque[float]] = defaultdict(deque)


def error_response(error_code: str, message: str, symbol: str | None = None, status_code: int = 400):
    payload = {
        "schema_version": settings.schema_version,
        "status": "error",
        "error_code": error_code,
        "message": message,
    }
    if symbol:
        payload["symbol"] = symbol
    return JSONResponse(payload, status_code=status_code, headers={"x-error-code": error_code})


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, version=settings.app_version)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        ip = request.client.host if request.client else "unknown"
        now = time.time()
        bucket = _request_buckets[ip]
        while bucket and bucket[0] < now - 60:
            bucket.popleft()
        if len(bucket) >= settings.rate_limit_requests_per_minute:
            return error_response("RATE_LIMITED", "Too many requests", status_code=429)
        bucket.append(now)

        response = None
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            latency_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.info(
                "request_complete",
                extra={
                    "request_id": request_id,
                    "path": request.url.path,
                    "symbol": request.query_params.get("symbol", ""),
                    "latency_ms": latency_ms,
                    "status_code": response.status_code if response else None,
                    "error_code": response.headers.get("x-error-code") if response else None,
                    "fallback_triggered": response.headers.get(FALLBACK_HEADER) == "1" if response else False,
                    "patched_fields": int(response.headers.get(PATCHED_HEADER, 0)) if response else 0,
                },
            )

    app.include_router(router)
    return app


@router.get("/health")
def health():
    return {"schema_version": settings.schema_version, "status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/readiness")
def readiness():
    return {
        "schema_version": settings.schema_version,
        "status": "ready",
        "providers": {
            "primary": quote_service.primary.name,
            "fallback": quote_service.fallback.name,
        },
    }


@router.get("/metrics")
def all_metrics():
    output = metrics.global_metrics()
    output["schema_version"] = settings.schema_version
    return output


@router.get("/quote/detailed", response_model=DetailedQuoteSchema)
async def detailed_quote(response: Response, symbol: str = Query(...)):
    try:
        clean_symbol = normalize_symbol(symbol)
    except ValueError:
        return error_response("INVALID_INPUT", "Invalid symbol")

    try:
        outcome = await quote_service.build_quote(clean_symbol)
    except DataError as exc:
        logger.warning(f"Detailed quote unavailable: {exc}")
        return error_response("QUOTE_UNAVAILABLE", exc.message, symbol=clean_symbol, status_code=404)

    response.headers[FALLBACK_HEADER] = "1" if outcome.fallback_triggered else "0"
    response.headers[PATCHED_HEADER] = str(len(outcome.patched_fields))
    return DetailedQuoteSchema(schema_version=settings.schema_version, **outcome.quote.model_dump())
