from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.service.parking.app.dto.availability import EventAvailability
from src.service.parking.app.dto.catalog import EventDetail, PriceQuote
from src.service.parking.domain.value_object.event_time import to_event_time


class PriceTierResponse(BaseModel):
    id: str
    name: str
    price: int
    starts_at: Optional[datetime]
    ends_at: Optional[datetime]


class AddonResponse(BaseModel):
    id: str
    name: str
    price: int


class EventResponse(BaseModel):
    id: str
    slug: str
    title: str
    description: str
    starts_at: datetime  # in the event's timezone
    gates_open_at: Optional[datetime]
    timezone: str
    capacity: int
    remaining: int
    is_sold_out: bool
    base_price: int
    current_price: int  # active tier price, else base price
    current_tier: Optional[str]
    service_fee_pct: Decimal
    tax_pct: Decimal
    cutoff_hours: int
    addons_enabled: bool
    price_tiers: List[PriceTierResponse]
    addons: List[AddonResponse]

    class Config:
        json_schema_extra = {
            'example': {
                'id': '0192f0c4-5b6e-7d21-9a43-2f1e8c7b6a50',
                'slug': 'football-game-home',
                'title': 'Home Football Game',
                'description': 'Walk to the stadium in under ten minutes.',
                'starts_at': '2026-11-21T19:00:00-05:00',
                'gates_open_at': '2026-11-21T15:00:00-05:00',
                'timezone': 'America/New_York',
                'capacity': 18,
                'remaining': 12,
                'is_sold_out': False,
                'base_price': 3500,
                'current_price': 3000,
                'current_tier': 'Early Bird',
                'service_fee_pct': '0.0600',
                'tax_pct': '0.0000',
                'cutoff_hours': 3,
                'addons_enabled': True,
                'price_tiers': [
                    {
                        'id': '0192f0c4-5b6e-7d21-9a43-2f1e8c7b6a51',
                        'name': 'Early Bird',
                        'price': 3000,
                        'starts_at': None,
                        'ends_at': '2026-11-14T23:59:59-05:00',
                    }
                ],
                'addons': [
                    {
                        'id': '0192f0c4-5b6e-7d21-9a43-2f1e8c7b6a52',
                        'name': 'Tailgate Pass',
                        'price': 1200,
                    }
                ],
            }
        }

    @classmethod
    def from_detail(cls, detail: EventDetail) -> 'EventResponse':
        event = detail.event
        tz_name = event.timezone
        return cls(
            id=event.id,
            slug=event.slug,
            title=event.title,
            description=event.description,
            starts_at=to_event_time(event.starts_at, tz_name),
            gates_open_at=to_event_time(event.gates_open_at, tz_name)
            if event.gates_open_at
            else None,
            timezone=tz_name,
            capacity=detail.availability.capacity,
            remaining=detail.availability.remaining,
            is_sold_out=detail.availability.is_sold_out,
            base_price=event.base_price,
            current_price=detail.unit_price,
            current_tier=detail.tier_name,
            service_fee_pct=event.service_fee_pct,
            tax_pct=event.tax_pct,
            cutoff_hours=event.cutoff_hours,
            addons_enabled=event.addons_enabled,
            price_tiers=[
                PriceTierResponse(
                    id=tier.id,
                    name=tier.name,
                    price=tier.price,
                    starts_at=to_event_time(tier.starts_at, tz_name) if tier.starts_at else None,
                    ends_at=to_event_time(tier.ends_at, tz_name) if tier.ends_at else None,
                )
                for tier in event.price_tiers
            ],
            addons=[
                AddonResponse(id=addon.id, name=addon.name, price=addon.price)
                for addon in event.addons
            ],
        )


class EventAvailabilityResponse(BaseModel):
    event_id: str
    capacity: int
    held: int  # PENDING reservations still inside their hold window
    sold: int
    remaining: int

    @classmethod
    def from_dto(cls, availability: EventAvailability) -> 'EventAvailabilityResponse':
        return cls(
            event_id=availability.event_id,
            capacity=availability.capacity,
            held=availability.held,
            sold=availability.sold,
            remaining=availability.remaining,
        )


class QuoteRequest(BaseModel):
    quantity: int = Field(ge=1)
    addon_ids: List[str] = []
    promo_code: Optional[str] = None

    class Config:
        json_schema_extra = {
            'example': {'quantity': 2, 'addon_ids': [], 'promo_code': 'EARLYBIRD10'}
        }


class LineItemResponse(BaseModel):
    description: str
    unit_amount: int
    quantity: int
    amount: int


class QuoteResponse(BaseModel):
    unit_price: int
    quantity: int
    tier_name: Optional[str]
    addons_total: int
    gross: int
    discount: int
    subtotal: int
    service_fee: int
    tax: int
    total: int
    promo_code: Optional[str]
    promo_applied: bool
    promo_rejection: Optional[str]  # why a sent code was not applied
    line_items: List[LineItemResponse]

    class Config:
        json_schema_extra = {
            'example': {
                'unit_price': 3500,
                'quantity': 2,
                'tier_name': None,
                'addons_total': 0,
                'gross': 7000,
                'discount': 700,
                'subtotal': 6300,
                'service_fee': 378,
                'tax': 0,
                'total': 6678,
                'promo_code': 'EARLYBIRD10',
                'promo_applied': True,
                'promo_rejection': None,
                'line_items': [
                    {
                        'description': 'Home Football Game parking',
                        'unit_amount': 3500,
                        'quantity': 2,
                        'amount': 7000,
                    },
                    {
                        'description': 'Service fee',
                        'unit_amount': 378,
                        'quantity': 1,
                        'amount': 378,
                    },
                ],
            }
        }

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> 'QuoteResponse':
        pricing = quote.pricing
        return cls(
            unit_price=pricing.unit_price,
            quantity=pricing.quantity,
            tier_name=pricing.tier_name,
            addons_total=pricing.addons_total,
            gross=pricing.gross,
            discount=pricing.discount,
            subtotal=pricing.subtotal,
            service_fee=pricing.service_fee,
            tax=pricing.tax,
            total=pricing.total,
            promo_code=pricing.promo_code,
            promo_applied=quote.promo_applied,
            promo_rejection=quote.promo_rejection.value if quote.promo_rejection else None,
            line_items=[
                LineItemResponse(
                    description=item.description,
                    unit_amount=item.unit_amount,
                    quantity=item.quantity,
                    amount=item.amount,
                )
                for item in pricing.line_items(event_title=quote.event_title)
            ],
        )
