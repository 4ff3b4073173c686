#!/usr/bin/env python3
"""
Database Seed Script
Populate the demo catalog

Features:
1. Reset tables - drop and recreate every table
2. Create Events - three events with price tiers and add-ons, capacity registered
   with the SQL availability ledger
3. Create Promo Codes - EARLYBIRD10 (10% off) and GROUPFIVE ($15 off)

Usage:
    uv run python -m script.seed_data
"""

import asyncio
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import text

from src.platform.config.core_setting import settings
from src.platform.database.orm_db_setting import Database
from src.service.parking.app.command.create_event_use_case import CreateEventUseCase
from src.service.parking.app.command.create_promo_code_use_case import CreatePromoCodeUseCase
from src.service.parking.driven_adapter.ledger.sql_availability_ledger import (
    SqlAvailabilityLedger,
)
from src.service.parking.driven_adapter.repo.event_command_repo_impl import EventCommandRepoImpl
from src.service.parking.driven_adapter.repo.promo_code_repo_impl import PromoCodeRepoImpl


def build_events(now: datetime) -> list[dict]:
    """Event definitions relative to `now` (aware, in DEFAULT_TIMEZONE)"""
    game_day = (now + timedelta(days=3)).replace(hour=19, minute=30, second=0, microsecond=0)
    concert_day = (now + timedelta(days=9)).replace(hour=20, minute=0, second=0, microsecond=0)
    new_year = now.year + 1
    # Naive values below are wall-clock times in the event's timezone
    bowl_kickoff = datetime(new_year, 1, 1, 13, 0)

    return [
        {
            'slug': 'football-game-home',
            'title': 'Football Game - Home',
            'description': (
                'Reserve a private yard parking spot for the big home game. '
                'Quick walk, easy exit.'
            ),
            'starts_at': game_day,
            'gates_open_at': game_day - timedelta(hours=2),
            'cutoff_hours': 3,
            'capacity': 18,
            'base_price': 3500,
            'service_fee_pct': '0.06',
            'tax_pct': '0',
            'price_tiers': [
                {
                    'name': 'Early Bird',
                    'price': 3000,
                    'starts_at': now - timedelta(days=14),
                    'ends_at': game_day - timedelta(hours=72),
                }
            ],
            'addons': [
                {'name': 'Oversized Vehicle', 'price': 1000},
                {'name': 'Early Arrival Window', 'price': 700},
                {'name': 'Tailgate Pass', 'price': 1200},
            ],
        },
        {
            'slug': 'concert-night',
            'title': 'Concert Night',
            'description': (
                'Skip the garages and park in a friendly yard that puts you minutes '
                'from your seats.'
            ),
            'starts_at': concert_day,
            'gates_open_at': concert_day - timedelta(minutes=90),
            'cutoff_hours': 2,
            'capacity': 14,
            'base_price': 4000,
            'service_fee_pct': '0.05',
            'tax_pct': '0.075',
            'price_tiers': [],
            'addons': [
                {'name': 'Oversized Vehicle', 'price': 1200},
                {'name': 'Tailgate Pass', 'price': 900},
            ],
        },
        {
            'slug': 'bowl-game',
            'title': 'Bowl Game',
            'description': (
                'Reserve parking for the biggest game of the season. '
                'Perfect for tailgates and group arrivals.'
            ),
            'starts_at': bowl_kickoff,
            'gates_open_at': datetime(new_year, 1, 1, 10, 30),
            'cutoff_hours': 4,
            'capacity': 22,
            'base_price': 5000,
            'service_fee_pct': '0.06',
            'tax_pct': '0.075',
            'price_tiers': [
                {
                    'name': 'Early Bird',
                    'price': 4500,
                    'starts_at': now - timedelta(days=30),
                    'ends_at': datetime(new_year, 1, 1, 4, 0),
                },
                {
                    'name': 'Last Minute',
                    'price': 5500,
                    'starts_at': datetime(new_year, 1, 1, 8, 0),
                    'ends_at': datetime(new_year, 1, 1, 12, 0),
                },
            ],
            'addons': [
                {'name': 'Oversized Vehicle', 'price': 1500},
                {'name': 'Early Arrival Window', 'price': 1200},
                {'name': 'Tailgate Pass', 'price': 1500},
            ],
        },
    ]


def build_promo_codes(now: datetime) -> list[dict]:
    return [
        {
            'code': 'EARLYBIRD10',
            'percent_off': '0.10',
            'max_uses': 30,
            'starts_at': now - timedelta(days=7),
            'ends_at': now + timedelta(days=7),
        },
        {
            'code': 'GROUPFIVE',
            'amount_off': 1500,
            'max_uses': 10,
            'starts_at': now - timedelta(days=1),
            'ends_at': now + timedelta(days=30),
        },
    ]


async def reset_tables(database: Database) -> None:
    print('🗑️  Resetting tables...')
    await database.drop_tables()
    await database.create_tables()
    print('   ✅ Tables recreated')


async def seed_catalog(database: Database) -> None:
    now = datetime.now(ZoneInfo(settings.DEFAULT_TIMEZONE))

    create_event = CreateEventUseCase(
        event_command_repo=EventCommandRepoImpl(session_factory=database.session),
        availability_ledger=SqlAvailabilityLedger(session_factory=database.session),
    )
    print('📅 Creating events...')
    for data in build_events(now):
        event = await create_event.execute(timezone_name=settings.DEFAULT_TIMEZONE, **data)
        print(f'   ✅ Created event: {event.slug} (ID={event.id}, capacity={event.capacity})')

    create_promo = CreatePromoCodeUseCase(
        promo_code_repo=PromoCodeRepoImpl(session_factory=database.session)
    )
    print('🎟️  Creating promo codes...')
    for data in build_promo_codes(now):
        promo = await create_promo.execute(**data)
        print(f'   ✅ Created promo code: {promo.code} (max uses {promo.max_uses})')


async def verify_data(database: Database) -> None:
    """Verify seeded data"""
    print('🔍 Verifying seeded data...')
    async with database.session() as session:
        for table in ['event', 'price_tier', 'addon', 'promo_code', 'event_capacity']:
            result = await session.execute(text(f'SELECT COUNT(*) FROM {table}'))
            print(f'   {table} count: {result.scalar()}')
    print('   ✅ Data verification completed!')


async def main() -> None:
    print('🌱 Starting data seeding...')
    print('=' * 50)
    database = Database()
    try:
        await reset_tables(database)
        await seed_catalog(database)
        await verify_data(database)
        print('=' * 50)
        print('🌱 Data seeding completed!')
    except Exception as e:
        print(f'❌ Seeding failed: {e}')
        raise SystemExit(1) from e
    finally:
        await database.dispose()


if __name__ == '__main__':
    asyncio.run(main())
