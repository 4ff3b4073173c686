"""Real SQLAlchemy adapters against the per-test SQLite database"""

from datetime import datetime

import pytest

from src.platform.database.orm_db_setting import Database
from src.service.parking.app.command.create_event_use_case import CreateEventUseCase
from src.service.parking.app.command.create_promo_code_use_case import CreatePromoCodeUseCase
from src.service.parking.driven_adapter.ledger.sql_availability_ledger import (
    SqlAvailabilityLedger,
)
from src.service.parking.driven_adapter.repo.event_command_repo_impl import EventCommandRepoImpl
from src.service.parking.driven_adapter.repo.event_query_repo_impl import EventQueryRepoImpl
from src.service.parking.driven_adapter.repo.promo_code_repo_impl import PromoCodeRepoImpl
from src.service.parking.driven_adapter.repo.reservation_command_repo_impl import (
    ReservationCommandRepoImpl,
)
from src.service.parking.driven_adapter.repo.reservation_query_repo_impl import (
    ReservationQueryRepoImpl,
)


class SqlAdapters:
    def __init__(self, database: Database) -> None:
        self.event_command_repo = EventCommandRepoImpl(session_factory=database.session)
        self.event_query_repo = EventQueryRepoImpl(session_factory=database.session)
        self.promo_code_repo = PromoCodeRepoImpl(session_factory=database.session)
        self.reservation_command_repo = ReservationCommandRepoImpl(
            session_factory=database.session
        )
        self.reservation_query_repo = ReservationQueryRepoImpl(session_factory=database.session)
        self.availability_ledger = SqlAvailabilityLedger(
            session_factory=database.session, max_per_order=10
        )


@pytest.fixture
def adapters(database: Database) -> SqlAdapters:
    return SqlAdapters(database)


@pytest.fixture
def create_event(adapters: SqlAdapters):
    use_case = CreateEventUseCase(
        event_command_repo=adapters.event_command_repo,
        availability_ledger=adapters.availability_ledger,
    )

    async def _create(**overrides):
        fields = {
            'slug': 'football-game-home',
            'title': 'Football Game',
            'starts_at': datetime(2026, 11, 21, 19, 30),
            'capacity': 18,
            'base_price': 3500,
            'service_fee_pct': '0.06',
            'cutoff_hours': 3,
            'timezone_name': 'America/New_York',
            'addons': [{'name': 'Tailgate Package', 'price': 2000}],
        }
        fields.update(overrides)
        return await use_case.execute(**fields)

    return _create


@pytest.fixture
def create_promo(adapters: SqlAdapters):
    use_case = CreatePromoCodeUseCase(promo_code_repo=adapters.promo_code_repo)

    async def _create(**fields):
        return await use_case.execute(**fields)

    return _create
