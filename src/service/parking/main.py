"""
Yard Parking - Main Application
Event catalog, parking reservations and payment reconciliation.

Run:
    granian --interface asgi src.service.parking.main:app
"""

from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI

from src.platform.app_factory import SERVICE_NAME, create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container, setup
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.parking.app.command.expire_pending_holds_use_case import (
    ExpirePendingHoldsUseCase,
)
from src.service.parking.driving_adapter.background.hold_sweeper import HoldSweeper


def build_hold_sweeper() -> HoldSweeper:
    return HoldSweeper(
        use_case=ExpirePendingHoldsUseCase(
            reservation_command_repo=container.reservation_command_repo(),
            availability_ledger=container.availability_ledger(),
            payment_gateway=container.payment_gateway(),
        )
    )


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Manage application lifespan: startup and shutdown"""
    Logger.base.info('🚀 [Yard Parking] Starting up...')

    tracing = TracingConfig(service_name=SERVICE_NAME)
    tracing.setup()

    setup()
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Yard Parking] Dependency injection wired')

    database = container.database()
    tracing.instrument_sqlalchemy(engine=database.engine)
    await database.create_tables()
    Logger.base.info('🗄️ [Yard Parking] Database tables ready')

    async with anyio.create_task_group() as background:
        if settings.ENABLE_HOLD_SWEEPER:
            background.start_soon(build_hold_sweeper().run_forever)  # type: ignore[arg-type]
        else:
            Logger.base.info('⏭️ [Yard Parking] Hold sweeper off (ENABLE_HOLD_SWEEPER=false)')

        Logger.base.info('✅ [Yard Parking] Startup complete')
        yield

        Logger.base.info('🛑 [Yard Parking] Shutting down...')
        background.cancel_scope.cancel()

    await database.dispose()
    tracing.shutdown()
    container.unwire()
    Logger.base.info('👋 [Yard Parking] Shutdown complete')


app = create_app(lifespan=lifespan)
