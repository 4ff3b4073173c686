from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from src.service.parking.domain.entity.reservation_entity import Reservation


class ReservationCreateRequest(BaseModel):
    event_id: str
    quantity: int = Field(ge=1)  # per-order maximum is enforced by the ledger (409)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    license_plate: Optional[str] = None
    notes: Optional[str] = None
    addon_ids: List[str] = []
    promo_code: Optional[str] = None

    class Config:
        json_schema_extra = {
            'example': {
                'event_id': '0192f0c4-5b6e-7d21-9a43-2f1e8c7b6a50',
                'quantity': 2,
                'first_name': 'Jamie',
                'last_name': 'Rivera',
                'email': 'jamie@example.com',
                'phone': '+15555550123',
                'license_plate': 'ABC-1234',
                'notes': 'Arriving with a trailer',
                'addon_ids': [],
                'promo_code': 'EARLYBIRD10',
            }
        }


class ReservationCreatedResponse(BaseModel):
    reservation_id: str
    redirect_url: str
    total: int


class ReservationAddonResponse(BaseModel):
    addon_id: str
    name: str
    price: int


class ReservationResponse(BaseModel):
    id: str
    event_id: str
    status: str
    quantity: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    license_plate: Optional[str]
    notes: Optional[str]
    tier_name: Optional[str]
    unit_price: int
    addons_total: int
    discount: int
    subtotal: int
    service_fee: int
    tax: int
    total: int
    promo_code: Optional[str]
    addons: List[ReservationAddonResponse]
    hold_expires_at: Optional[datetime]
    created_at: Optional[datetime]
    paid_at: Optional[datetime]
    canceled_at: Optional[datetime]
    refunded_at: Optional[datetime]

    @classmethod
    def from_entity(cls, reservation: Reservation) -> 'ReservationResponse':
        contact = reservation.contact
        return cls(
            id=reservation.id,
            event_id=reservation.event_id,
            status=reservation.status.value,
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
            promo_code=reservation.promo_code,
            addons=[
                ReservationAddonResponse(
                    addon_id=addon.addon_id, name=addon.name, price=addon.price
                )
                for addon in reservation.addons
            ],
            hold_expires_at=reservation.hold_expires_at,
            created_at=reservation.created_at,
            paid_at=reservation.paid_at,
            canceled_at=reservation.canceled_at,
            refunded_at=reservation.refunded_at,
        )


class RefundRequest(BaseModel):
    override_cutoff: bool = False


class WebhookAckResponse(BaseModel):
    received: bool = True
    handled: bool
    reservation_id: Optional[str] = None
    status: Optional[str] = None
