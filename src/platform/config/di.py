"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.service.parking.driven_adapter.ledger.in_memory_availability_ledger import (
    InMemoryAvailabilityLedger,
)
from src.service.parking.driven_adapter.ledger.sql_availability_ledger import (
    SqlAvailabilityLedger,
)
from src.service.parking.driven_adapter.notification.logging_notification_sink import (
    LoggingNotificationSink,
)
from src.service.parking.driven_adapter.payment.mock_payment_gateway import MockPaymentGateway
from src.service.parking.driven_adapter.payment.stripe_payment_gateway import (
    StripePaymentGateway,
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


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (uses AsyncEngineManager, URL from settings unless overridden)
    database = providers.Singleton(Database)

    # Repositories (stateless - use session_factory per-request)
    event_query_repo = providers.Singleton(
        EventQueryRepoImpl, session_factory=database.provided.session
    )
    event_command_repo = providers.Singleton(
        EventCommandRepoImpl, session_factory=database.provided.session
    )
    promo_code_repo = providers.Singleton(
        PromoCodeRepoImpl, session_factory=database.provided.session
    )
    reservation_command_repo = providers.Singleton(
        ReservationCommandRepoImpl, session_factory=database.provided.session
    )
    reservation_query_repo = providers.Singleton(
        ReservationQueryRepoImpl, session_factory=database.provided.session
    )

    # Availability ledger (LEDGER_BACKEND: sql | memory)
    availability_ledger = providers.Selector(
        config_service.provided.LEDGER_BACKEND,
        sql=providers.Singleton(
            SqlAvailabilityLedger,
            session_factory=database.provided.session,
            max_per_order=config_service.provided.MAX_SPOTS_PER_ORDER,
        ),
        memory=providers.Singleton(
            InMemoryAvailabilityLedger,
            reservation_command_repo=reservation_command_repo,
            max_per_order=config_service.provided.MAX_SPOTS_PER_ORDER,
        ),
    )

    # Payment gateway (PAYMENT_GATEWAY: mock | stripe)
    payment_gateway = providers.Selector(
        config_service.provided.PAYMENT_GATEWAY,
        mock=providers.Singleton(MockPaymentGateway),
        stripe=providers.Singleton(StripePaymentGateway),
    )

    notification_sink = providers.Singleton(LoggingNotificationSink)


container = Container()


def setup() -> None:
    container.config_service()
    container.database()


def cleanup() -> None:
    container.reset_singletons()
