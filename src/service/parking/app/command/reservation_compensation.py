"""Side effects that follow a won PENDING/PAID status change"""

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.parking.domain.entity.reservation_entity import Reservation


async def release_hold(*, ledger: IAvailabilityLedger, reservation: Reservation) -> bool:
    """
    Give a CANCELED or REFUNDED reservation's spots back.

    The status change is already committed when this runs, so a failed release must
    not fail the caller: the row keeps hold_released=False and the hold sweeper
    retries it. Repeating the call is harmless, the ledger releases once per
    reservation.

    Returns:
        False when the release failed and was left to the sweeper
    """
    try:
        await ledger.release(
            event_id=reservation.event_id,
            quantity=reservation.quantity,
            reservation_id=reservation.id,
        )
    except Exception as e:
        Logger.base.error(
            f'❌ [LEDGER] Releasing {reservation.quantity} spot(s) of reservation '
            f'{reservation.id} failed, the sweeper will retry: {e}'
        )
        return False
    return True


async def expire_session_best_effort(*, gateway: IPaymentGateway, session_id: str | None) -> None:
    if not session_id:
        return
    try:
        await gateway.expire_session(session_id=session_id)
    except CustomBaseError as e:
        # The session still times out on its own at expires_at
        Logger.base.warning(f'⚠️ [RESERVE] Could not expire payment session {session_id}: {e}')
