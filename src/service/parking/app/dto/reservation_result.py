import attrs

from src.service.parking.domain.entity.reservation_entity import Reservation


@attrs.define(frozen=True)
class ReservationResult:
    reservation: Reservation
    redirect_url: str
    session_id: str


@attrs.define(frozen=True)
class ReconcileResult:
    handled: bool
    reservation_id: str | None = None
    status: str | None = None
    detail: str = ''
