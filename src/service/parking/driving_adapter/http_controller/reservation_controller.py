from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.parking.app.command.cancel_reservation_use_case import CancelReservationUseCase
from src.service.parking.app.command.create_reservation_use_case import CreateReservationUseCase
from src.service.parking.app.command.refund_reservation_use_case import RefundReservationUseCase
from src.service.parking.app.query.get_reservation_use_case import GetReservationUseCase
from src.service.parking.domain.value_object.contact_info import ContactInfo
from src.service.parking.driving_adapter.http_controller.schema.reservation_schema import (
    RefundRequest,
    ReservationCreatedResponse,
    ReservationCreateRequest,
    ReservationResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_reservation(
    request: ReservationCreateRequest,
    use_case: CreateReservationUseCase = Depends(CreateReservationUseCase.depends),
) -> ReservationCreatedResponse:
    with tracer.start_as_current_span('controller.create_reservation') as span:
        span.set_attribute('event_id', request.event_id)
        span.set_attribute('quantity', request.quantity)

        result = await use_case.execute(
            event_id=request.event_id,
            quantity=request.quantity,
            contact=ContactInfo(
                first_name=request.first_name,
                last_name=request.last_name,
                email=str(request.email),
                phone=request.phone,
                license_plate=request.license_plate,
                notes=request.notes,
            ),
            addon_ids=request.addon_ids,
            promo_code=request.promo_code,
        )

        span.set_attribute('reservation.id', result.reservation.id)
        return ReservationCreatedResponse(
            reservation_id=result.reservation.id,
            redirect_url=result.redirect_url,
            total=result.reservation.total,
        )


@router.get('/{reservation_id}')
@Logger.io
async def get_reservation(
    reservation_id: str,
    use_case: GetReservationUseCase = Depends(GetReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)


@router.patch('/{reservation_id}/cancel', status_code=status.HTTP_200_OK)
@Logger.io
async def cancel_reservation(
    reservation_id: str,
    use_case: CancelReservationUseCase = Depends(CancelReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)


@router.post('/{reservation_id}/refund', status_code=status.HTTP_200_OK)
@Logger.io
async def refund_reservation(
    reservation_id: str,
    request: RefundRequest,
    use_case: RefundReservationUseCase = Depends(RefundReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(
        reservation_id=reservation_id, override_cutoff=request.override_cutoff
    )
    return ReservationResponse.from_entity(reservation)
