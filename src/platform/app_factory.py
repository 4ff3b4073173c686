"""
FastAPI application assembly: routers, CORS, error mapping, tracing and the
operational endpoints (/health, /metrics).
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.exception.exception_handlers import register_exception_handlers
from src.platform.observability.tracing import TracingConfig
from src.service.parking.driving_adapter.http_controller.event_controller import (
    router as event_router,
)
from src.service.parking.driving_adapter.http_controller.payment_webhook_controller import (
    router as payment_router,
)
from src.service.parking.driving_adapter.http_controller.reservation_controller import (
    router as reservation_router,
)


SERVICE_NAME = 'yard-parking'

ROUTERS = (
    (event_router, '/api/event', 'event'),
    (reservation_router, '/api/reservation', 'reservation'),
    (payment_router, '/api/payment', 'payment'),
)


def create_app(*, lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]]) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description='Event parking: catalog, reservations and payment reconciliation',
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Instrument before routes are mounted
    TracingConfig(service_name=SERVICE_NAME).instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['GET', 'POST', 'PATCH'],
        allow_headers=['*'],
    )
    register_exception_handlers(app)

    for router, prefix, tag in ROUTERS:
        app.include_router(router, prefix=prefix, tags=[tag])

    app.add_api_route('/health', health_check, methods=['GET'], include_in_schema=False)
    app.add_api_route('/metrics', prometheus_metrics, methods=['GET'], include_in_schema=False)
    return app


async def health_check() -> JSONResponse:
    """Liveness plus a database round trip; 503 lets the orchestrator pull the instance."""
    database_ok = await container.database().ping()
    body = {
        'status': 'healthy' if database_ok else 'degraded',
        'service': settings.PROJECT_NAME,
        'database': 'ok' if database_ok else 'unreachable',
        'ledger': settings.LEDGER_BACKEND,
        'payment_gateway': settings.PAYMENT_GATEWAY,
    }
    code = status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=body, status_code=code)


async def prometheus_metrics() -> PlainTextResponse:
    return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
