from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from http import HTTPStatus

import anyio
import httpx
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.health import router as health_router
from app.api.numbers import router as numbers_router
from app.core.logging import configure_logging
from app.core.metrics import ERROR_COUNT, RATE_LIMITED_COUNT, REQUEST_COUNT, REQUEST_LATENCY
from app.core.rate_limit import RateLimitDecision, RateLimitRule, SlidingWindowRateLimiter
from app.core.settings import Settings, get_settings
from app.numbers.service import NumbersService
from app.numbers.store import WindowStore
from app.numbers.upstream import HttpNumbersProvider, NumbersProvider, StaticNumbersProvider
from app.utils.error_payloads import error_payload
from app.utils.errors import AppError, RequestTimeoutError
from app.utils.request_id import get_request_id, set_request_id


_RATE_LIMIT_EXEMPT_PATHS = {"/health", "/metrics", "/docs", "/openapi.json"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    log = logging.getLogger("app.startup")
    settings: Settings = app.state.settings
    log.info(
        "startup",
        extra={
            "numbers_source": settings.numbers_source,
            "upstream_base_url": settings.upstream_base_url,
            "default_window_size": settings.default_window_size,
        },
    )
    try:
        yield
    finally:
        client: httpx.AsyncClient | None = getattr(app.state, "http_client", None)
        if client is not None:
            await client.aclose()
        log.info("shutdown")


def _build_provider(app: FastAPI, settings: Settings) -> NumbersProvider:
    if settings.numbers_source == "static":
        return StaticNumbersProvider()
    client = httpx.AsyncClient(timeout=settings.upstream_timeout_seconds)
    app.state.http_client = client
    return HttpNumbersProvider.from_settings(client, settings)


def create_app(
    settings: Settings | None = None,
    provider: NumbersProvider | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level, service=settings.app_name)

    app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.started_at = datetime.now(timezone.utc)
    app.state.http_client = None
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.state.window_store = WindowStore()
    app.state.numbers_service = NumbersService(
        app.state.window_store,
        provider if provider is not None else _build_provider(app, settings),
        default_window_size=settings.default_window_size,
    )
    app.state.rate_limiter = (
        SlidingWindowRateLimiter(
            window_seconds=settings.rate_limit_window_seconds,
            default_limit=settings.rate_limit_default_requests,
            rules=[
                RateLimitRule(path="/numbers", max_requests=settings.rate_limit_numbers_requests),
            ],
        )
        if settings.rate_limit_enabled
        else None
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = set_request_id(request.headers.get("X-Request-Id"))
        start = time.perf_counter()
        status_code = HTTPStatus.INTERNAL_SERVER_ERROR
        decision: RateLimitDecision | None = None
        try:
            limiter: SlidingWindowRateLimiter | None = request.app.state.rate_limiter
            if limiter is not None and request.url.path not in _RATE_LIMIT_EXEMPT_PATHS:
                decision = limiter.check(
                    client_id=_client_identifier(request, settings.trust_forwarded_for),
                    path=request.url.path,
                )
                if not decision.allowed:
                    status_code = HTTPStatus.TOO_MANY_REQUESTS
                    RATE_LIMITED_COUNT.labels(path=_metric_path_template(request)).inc()
                    ERROR_COUNT.labels(code="rate_limited", classification="client").inc()
                    response = _error_response(
                        int(status_code),
                        error_payload(
                            code="rate_limited",
                            message="Too many requests",
                            classification="client",
                        ),
                    )
                    response.headers["Retry-After"] = str(decision.retry_after_seconds)
                    _set_rate_limit_headers(response, decision)
                    return response
            try:
                with anyio.fail_after(settings.request_timeout_seconds):
                    response = await call_next(request)
            except TimeoutError:
                status_code = HTTPStatus.GATEWAY_TIMEOUT
                logging.getLogger("app").warning(
                    "request_timeout", extra={"path": request.url.path}
                )
                return _app_error_response(RequestTimeoutError())
            status_code = response.status_code
        finally:
            duration = time.perf_counter() - start
            # Routing fills in scope["route"], so resolve the template afterwards.
            metric_path = _metric_path_template(request)
            REQUEST_LATENCY.labels(path=metric_path).observe(duration)
            REQUEST_COUNT.labels(
                method=request.method,
                path=metric_path,
                status=str(int(status_code)),
            ).inc()
        if decision is not None:
            _set_rate_limit_headers(response, decision)
        response.headers["X-Request-Id"] = request_id
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code, classification = _map_http_error(exc.status_code)
        payload = error_payload(
            code=code,
            message=str(exc.detail),
            classification=classification,
        )
        ERROR_COUNT.labels(code=code, classification=classification).inc()
        return _error_response(exc.status_code, payload)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        detail = jsonable_encoder(exc.errors())
        payload = error_payload(
            code="validation_error",
            message="Request validation failed",
            classification="client",
            extra={"detail": detail},
        )
        ERROR_COUNT.labels(code="validation_error", classification="client").inc()
        return _error_response(422, payload)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.detail.classification == "client":
            logging.getLogger("app").info(
                "client_error", extra={"code": exc.detail.code, "path": request.url.path}
            )
        return _app_error_response(exc)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logging.getLogger("app").exception("unhandled_error")
        ERROR_COUNT.labels(code="internal_error", classification="server").inc()
        payload = error_payload(
            code="internal_error",
            message="Unexpected error",
            classification="server",
            ensure_request_id=True,
        )
        return _error_response(500, payload)

    app.include_router(health_router)
    app.include_router(numbers_router)

    return app


def _map_http_error(status_code: int) -> tuple[str, str]:
    if status_code == 404:
        return "not_found", "client"
    if status_code == 405:
        return "method_not_allowed", "client"
    if status_code == 422:
        return "validation_error", "client"
    if 400 <= status_code < 500:
        return "bad_request", "client"
    return "http_error", "server"


def _error_response(status_code: int, payload: dict) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=payload)
    request_id = get_request_id()
    if request_id:
        response.headers["X-Request-Id"] = request_id
    return response


def _app_error_response(exc: AppError) -> JSONResponse:
    ERROR_COUNT.labels(code=exc.detail.code, classification=exc.detail.classification).inc()
    payload = error_payload(
        code=exc.detail.code,
        message=exc.detail.message,
        classification=exc.detail.classification,
        extra=exc.detail.extra,
    )
    return _error_response(exc.detail.status_code, payload)


def _set_rate_limit_headers(response: Response, decision: RateLimitDecision) -> None:
    response.headers["X-RateLimit-Limit"] = str(decision.limit)
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)


def _metric_path_template(request: Request) -> str:
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    if isinstance(path, str) and path:
        return path
    return request.url.path


def _client_identifier(request: Request, trust_forwarded_for: bool = False) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For") if trust_forwarded_for else None
    if forwarded_for:
        return forwarded_for.split(",", 1)[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


app = create_app()
