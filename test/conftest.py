"""
Test Configuration and Fixtures

This module provides:
- Environment setup (SQLite database file, mock payment gateway, no sweeper)
- A fresh database per test for integration tests
- An HTTP client wired to the DI container

Architecture:
- Unit tests (test/**/unit/): mocks or the in-memory ledger, no database
- Integration tests (test/**/integration/): real SQLAlchemy on SQLite via aiosqlite
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings are read once at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    test_dir = Path(__file__).parent

    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    db_path = test_dir / f'test_{worker_id}.sqlite3'
    os.environ['DATABASE_URL'] = f'sqlite+aiosqlite:///{db_path}'

    test_log_dir = test_dir / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ['LEDGER_BACKEND'] = 'sql'
    os.environ['PAYMENT_GATEWAY'] = 'mock'
    os.environ['ENABLE_HOLD_SWEEPER'] = 'false'
    os.environ['EMAIL_ENABLED'] = 'true'
    os.environ['PUBLIC_BASE_URL'] = 'http://test'


# Call immediately to set env vars before any imports
_early_setup_test_environment()

from collections.abc import AsyncGenerator  # noqa: E402

from dependency_injector import providers  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
import pytest  # noqa: E402

from src.platform.config.core_setting import settings  # noqa: E402
from src.platform.config.di import container  # noqa: E402
from src.platform.database.orm_db_setting import Database  # noqa: E402


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Mark tests by folder so `-m unit` / `-m integration` work without decorators"""
    for item in items:
        path = str(item.path)
        if '/unit/' in path and 'unit' not in item.keywords:
            item.add_marker(pytest.mark.unit)
        elif '/integration/' in path and 'integration' not in item.keywords:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Empty schema for every test"""
    db = Database(url=settings.DATABASE_URL_ASYNC)
    await db.drop_tables()
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, DI container pointed at the test database"""
    from src.platform.config.wire_modules import WIRE_MODULES
    from src.service.parking.main import app

    container.database.override(providers.Object(database))
    container.wire(modules=WIRE_MODULES)
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
            yield ac
    finally:
        container.unwire()
        container.database.reset_override()
        container.reset_singletons()
