from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.reservation_status import ReservationStatus
from src.service.parking.domain.value_object.addon_snapshot import AddonSnapshot
from src.service.parking.domain.value_object.contact_info import ContactInfo
from src.service.parking.domain.value_object.event_time import as_utc
from src.service.parking.driven_adapter.model.reservation_model import (
    ReservationAddonModel,
    ReservationModel,
)


def model_to_reservation(model: ReservationModel) -> Reservation:
    return Reservation(
        id=model.id,
        event_id=model.event_id,
        quantity=model.quantity,
        contact=ContactInfo(
            first_name=model.first_name,
            last_name=model.last_name,
            email=model.email,
            phone=model.phone,
            license_plate=model.license_plate,
            notes=model.notes,
        ),
        tier_name=model.tier_name,
        unit_price=model.unit_price,
        addons_total=model.addons_total,
        discount=model.discount,
        subtotal=model.subtotal,
        service_fee=model.service_fee,
        tax=model.tax,
        total=model.total,
        addons=[
            AddonSnapshot(addon_id=line.addon_id, name=line.name, price=line.price)
            for line in model.addons
        ],
        promo_code_id=model.promo_code_id,
        promo_code=model.promo_code,
        status=ReservationStatus(model.status),
        payment_session_id=model.payment_session_id,
        hold_expires_at=as_utc(model.hold_expires_at),
        hold_released=model.hold_released,
        created_at=as_utc(model.created_at),
        updated_at=as_utc(model.updated_at),
        paid_at=as_utc(model.paid_at),
        canceled_at=as_utc(model.canceled_at),
        refunded_at=as_utc(model.refunded_at),
    )


def reservation_to_model(reservation: Reservation) -> ReservationModel:
    contact = reservation.contact
    return ReservationModel(
        id=reservation.id,
        event_id=reservation.event_id,
        quantity=reservation.quantity,
        first_name=contact.first_name,
        last_name=contact.last_name,
        email=contact.email,
        phone=contact.phone,
        license_plate=contact.license_plate,
        notes=contact.notes,
        tier_name=reservation.tier_name,
        unit_price=reservation.unit_price,
        addons_total=reservation.addons_total,
        discount=reservation.discount,
        subtotal=reservation.subtotal,
        service_fee=reservation.service_fee,
        tax=reservation.tax,
        total=reservation.total,
        promo_code_id=reservation.promo_code_id,
        promo_code=reservation.promo_code,
        status=reservation.status.value,
        payment_session_id=reservation.payment_session_id,
        hold_expires_at=as_utc(reservation.hold_expires_at),
        hold_released=reservation.hold_released,
        created_at=as_utc(reservation.created_at),
        updated_at=as_utc(reservation.updated_at),
        addons=[
            ReservationAddonModel(addon_id=line.addon_id, name=line.name, price=line.price)
            for line in reservation.addons
        ],
    )
