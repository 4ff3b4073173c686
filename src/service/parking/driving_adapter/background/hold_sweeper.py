"""
Hold Sweeper

Periodic driver for ExpirePendingHoldsUseCase, started in the application lifespan
task group and cancelled with it on shutdown.
"""

import anyio

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.command.expire_pending_holds_use_case import (
    ExpirePendingHoldsUseCase,
)


class HoldSweeper:
    def __init__(
        self, *, use_case: ExpirePendingHoldsUseCase, interval_seconds: float | None = None
    ) -> None:
        self.use_case = use_case
        self.interval_seconds = interval_seconds or settings.HOLD_SWEEP_INTERVAL_SECONDS

    async def run_once(self) -> int:
        return await self.use_case.execute()

    async def run_forever(self) -> None:
        Logger.base.info(f'🧹 [SWEEPER] Started, every {self.interval_seconds}s')
        while True:
            try:
                await self.run_once()
            except anyio.get_cancelled_exc_class():
                raise
            except Exception as e:
                # One bad sweep must not stop the next; the error is already logged by Logger.io
                Logger.base.warning(f'⚠️ [SWEEPER] Sweep failed, retrying next interval: {e}')
            await anyio.sleep(self.interval_seconds)
