"""Shared builders for parking tests"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from src.service.parking.domain.entity.event_entity import Addon, Event, PriceTier
from src.service.parking.domain.entity.promo_code_entity import PromoCode
from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.reservation_status import ReservationStatus
from src.service.parking.domain.pricing_calculator import calculate_price
from src.service.parking.domain.promo_code_validator import NO_PROMO, ValidPromo
from src.service.parking.domain.value_object.contact_info import ContactInfo


NOW = datetime(2026, 10, 20, 16, 0, tzinfo=timezone.utc)  # 12:00 EDT in New York
GAME_DAY = datetime(2026, 11, 21, 19, 30)  # naive, event wall clock


def build_event(
    *,
    capacity: int = 18,
    base_price: int = 3500,
    service_fee_pct: str = '0.06',
    tax_pct: str = '0',
    cutoff_hours: int = 3,
    price_tiers: list[PriceTier] | None = None,
    addons: list[Addon] | None = None,
    addons_enabled: bool = True,
    starts_at: datetime = GAME_DAY,
    slug: str = 'football-game-home',
) -> Event:
    return Event.create(
        slug=slug,
        title='Football Game',
        starts_at=starts_at,
        capacity=capacity,
        base_price=base_price,
        service_fee_pct=service_fee_pct,
        tax_pct=tax_pct,
        cutoff_hours=cutoff_hours,
        timezone_name='America/New_York',
        addons_enabled=addons_enabled,
        price_tiers=price_tiers,
        addons=addons,
    )


def build_contact(**overrides: str) -> ContactInfo:
    fields = {
        'first_name': 'Jamie',
        'last_name': 'Rivera',
        'email': 'jamie@example.com',
        'phone': '+15555550123',
        'license_plate': 'ABC-1234',
    }
    fields.update(overrides)
    return ContactInfo(**fields)


def build_reservation(
    event: Event,
    *,
    quantity: int = 2,
    status: ReservationStatus = ReservationStatus.PENDING,
    promo: PromoCode | None = None,
    payment_session_id: str | None = 'mock_cs_1',
) -> Reservation:
    pricing = calculate_price(
        event,
        quantity=quantity,
        promo=ValidPromo(promo=promo) if promo else NO_PROMO,
        now=NOW,
    )
    reservation = Reservation.create(
        event_id=event.id,
        contact=build_contact(),
        pricing=pricing,
        addons=[],
        hold_expires_at=NOW,
        max_per_order=10,
        now=NOW,
    )
    reservation.status = status
    reservation.payment_session_id = payment_session_id
    return reservation


class RepositoryMocks:
    """AsyncMock stand-ins for every port a reservation use case talks to"""

    def __init__(self) -> None:
        self.event_query_repo = AsyncMock()
        self.event_command_repo = AsyncMock()
        self.promo_code_repo = AsyncMock()
        self.reservation_command_repo = AsyncMock()
        self.reservation_query_repo = AsyncMock()
        self.availability_ledger = AsyncMock()
        self.payment_gateway = AsyncMock()
        self.notification_sink = AsyncMock()

        self.promo_code_repo.get_by_code.return_value = None
        self.event_command_repo.exists_by_slug.return_value = False
        self.event_command_repo.create.side_effect = lambda *, event: event
        self.reservation_command_repo.create.side_effect = lambda *, reservation: reservation
        self.reservation_command_repo.transition_status.return_value = True
        self.reservation_command_repo.mark_hold_released.return_value = True
        self.reservation_command_repo.list_expired_holds.return_value = []
        self.reservation_command_repo.list_unreleased_holds.return_value = []
        self.promo_code_repo.increment_usage_atomically.return_value = True


@pytest.fixture
def repos() -> RepositoryMocks:
    return RepositoryMocks()


@pytest.fixture
def event() -> Event:
    return build_event()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_event():
    return build_event


@pytest.fixture
def make_contact():
    return build_contact


@pytest.fixture
def make_reservation():
    return build_reservation
