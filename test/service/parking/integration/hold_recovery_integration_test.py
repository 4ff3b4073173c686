"""
Integration tests for hold bookkeeping across the ledger and the reservation table

Test Focus:
1. A hold and its PENDING row commit together or not at all
2. A reservation's spots are released once, however often the release is retried
3. Releases that fail after a cancel are recovered by the sweeper
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from src.platform.exception.exceptions import CapacityError, GatewayError
from src.service.parking.app.command.create_reservation_use_case import CreateReservationUseCase
from src.service.parking.app.command.expire_pending_holds_use_case import (
    ExpirePendingHoldsUseCase,
)
from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.reservation_status import ReservationStatus
from src.service.parking.domain.pricing_calculator import calculate_price
from src.service.parking.driven_adapter.ledger.sql_availability_ledger import (
    SqlAvailabilityLedger,
)
from src.service.parking.driven_adapter.payment.mock_payment_gateway import MockPaymentGateway


class FlakyReleaseLedger(SqlAvailabilityLedger):
    """SQL ledger whose first `failures` releases die before reaching the database"""

    def __init__(self, *, failures: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self.failures = failures

    async def release(self, **kwargs):
        if self.failures:
            self.failures -= 1
            raise ConnectionError('connection pool timed out')
        return await super().release(**kwargs)


def pending_reservation(event, contact, now, *, quantity=1) -> Reservation:
    return Reservation.create(
        event_id=event.id,
        contact=contact,
        pricing=calculate_price(event, quantity=quantity, now=now),
        addons=[],
        hold_expires_at=now + timedelta(minutes=45),
        max_per_order=10,
        now=now,
    )


def sweeper(adapters, ledger) -> ExpirePendingHoldsUseCase:
    return ExpirePendingHoldsUseCase(
        reservation_command_repo=adapters.reservation_command_repo,
        availability_ledger=ledger,
        payment_gateway=MockPaymentGateway(webhook_secret='whsec_test', base_url='http://test'),
    )


async def consumed(adapters, event_id: str) -> int:
    return (await adapters.availability_ledger.get_availability(event_id=event_id)).consumed


@pytest.mark.integration
class TestHoldWithRow:
    @pytest.mark.asyncio
    async def test_hold_stores_the_pending_row(self, adapters, create_event, make_contact, now):
        event = await create_event(capacity=18)
        pending = pending_reservation(event, make_contact(), now, quantity=3)

        await adapters.availability_ledger.reserve(
            event_id=event.id, quantity=3, reservation=pending
        )

        stored = await adapters.reservation_command_repo.get_by_id(reservation_id=pending.id)
        assert stored.status == ReservationStatus.PENDING
        assert stored.hold_released is False
        assert await consumed(adapters, event.id) == 3

    @pytest.mark.asyncio
    async def test_refused_hold_stores_no_row(self, adapters, create_event, make_contact, now):
        event = await create_event(capacity=1)
        await adapters.availability_ledger.reserve(event_id=event.id, quantity=1)
        pending = pending_reservation(event, make_contact(), now)

        with pytest.raises(CapacityError):
            await adapters.availability_ledger.reserve(
                event_id=event.id, quantity=1, reservation=pending
            )

        assert await adapters.reservation_command_repo.get_by_id(reservation_id=pending.id) is None

    @pytest.mark.asyncio
    async def test_failed_row_insert_rolls_the_hold_back(
        self, adapters, create_event, make_contact, now
    ):
        """
        Given: a reservation row already stored with its 2-spot hold
        When: the same reservation is held again and its insert hits the primary key
        Then: the second hold is rolled back with the insert, consumed stays 2
        """
        # Arrange
        event = await create_event(capacity=18)
        pending = pending_reservation(event, make_contact(), now, quantity=2)
        ledger = adapters.availability_ledger
        await ledger.reserve(event_id=event.id, quantity=2, reservation=pending)

        # Act
        with pytest.raises(IntegrityError):
            await ledger.reserve(event_id=event.id, quantity=2, reservation=pending)

        # Assert
        assert await consumed(adapters, event.id) == 2


@pytest.mark.integration
class TestReleaseOnce:
    @pytest.mark.asyncio
    async def test_repeated_release_gives_spots_back_once(
        self, adapters, create_event, make_contact, now
    ):
        event = await create_event(capacity=18)
        ledger = adapters.availability_ledger
        await ledger.reserve(event_id=event.id, quantity=4)
        pending = pending_reservation(event, make_contact(), now, quantity=3)
        await ledger.reserve(event_id=event.id, quantity=3, reservation=pending)
        await adapters.reservation_command_repo.transition_status(
            reservation=pending.cancel(now=now), expected_status=ReservationStatus.PENDING
        )

        first = await ledger.release(event_id=event.id, quantity=3, reservation_id=pending.id)
        second = await ledger.release(event_id=event.id, quantity=3, reservation_id=pending.id)

        assert first.consumed == 4
        assert second.consumed == 4
        stored = await adapters.reservation_command_repo.get_by_id(reservation_id=pending.id)
        assert stored.hold_released is True

    @pytest.mark.asyncio
    async def test_pending_reservation_cannot_be_released(
        self, adapters, create_event, make_contact, now
    ):
        event = await create_event(capacity=18)
        pending = pending_reservation(event, make_contact(), now, quantity=2)
        await adapters.availability_ledger.reserve(
            event_id=event.id, quantity=2, reservation=pending
        )

        await adapters.availability_ledger.release(
            event_id=event.id, quantity=2, reservation_id=pending.id
        )

        assert await consumed(adapters, event.id) == 2


@pytest.mark.integration
class TestSweeperRecovery:
    @pytest.mark.asyncio
    async def test_sweeper_recovers_a_release_that_failed_after_cancel(
        self, database, adapters, create_event, make_contact, now
    ):
        """
        Given: a capacity-1 event whose only spot is held by an abandoned checkout
        When: the sweeper cancels it but the ledger is unreachable for that whole pass
        Then:
          - the row is CANCELED with hold_released still False, the spot still held
          - the next pass gives the spot back and flips the flag
          - further passes change nothing
        """
        # Arrange
        event = await create_event(capacity=1)
        pending = pending_reservation(event, make_contact(), now)
        await adapters.availability_ledger.reserve(
            event_id=event.id, quantity=1, reservation=pending
        )
        flaky = FlakyReleaseLedger(
            failures=2, session_factory=database.session, max_per_order=10
        )
        sweep = sweeper(adapters, flaky)
        later = now + timedelta(minutes=46)

        # Act
        first = await sweep.execute(now=later)
        after_first = await adapters.reservation_command_repo.get_by_id(reservation_id=pending.id)
        held_after_first = await consumed(adapters, event.id)
        second = await sweep.execute(now=later)
        third = await sweep.execute(now=later)

        # Assert
        assert first == 0
        assert after_first.status == ReservationStatus.CANCELED
        assert after_first.hold_released is False
        assert held_after_first == 1
        assert second == 1
        assert third == 0
        assert await consumed(adapters, event.id) == 0
        stored = await adapters.reservation_command_repo.get_by_id(reservation_id=pending.id)
        assert stored.hold_released is True

    @pytest.mark.asyncio
    async def test_gateway_failure_with_failed_compensation_is_recovered(
        self, database, adapters, create_event, make_contact, now
    ):
        """
        Given: a capacity-1 event, a gateway that refuses the checkout, and a ledger
            whose release fails once
        When: a buyer reserves the last spot and the sweeper runs afterwards
        Then: the buyer sees the GatewayError and the sweeper makes the spot bookable again
        """
        # Arrange
        event = await create_event(capacity=1)
        gateway = MockPaymentGateway(webhook_secret='whsec_test', base_url='http://test')
        gateway.fail_next_checkout = True
        use_case = CreateReservationUseCase(
            event_query_repo=adapters.event_query_repo,
            promo_code_repo=adapters.promo_code_repo,
            reservation_command_repo=adapters.reservation_command_repo,
            availability_ledger=FlakyReleaseLedger(
                failures=1, session_factory=database.session, max_per_order=10
            ),
            payment_gateway=gateway,
        )

        # Act
        with pytest.raises(GatewayError):
            await use_case.execute(event_id=event.id, quantity=1, contact=make_contact(), now=now)
        leftovers = await adapters.reservation_command_repo.list_unreleased_holds()
        recovered = await sweeper(adapters, adapters.availability_ledger).execute(now=now)

        # Assert
        assert [r.status for r in leftovers] == [ReservationStatus.CANCELED]
        assert recovered == 1
        assert await consumed(adapters, event.id) == 0
        result = await use_case.execute(
            event_id=event.id, quantity=1, contact=make_contact(), now=now
        )
        assert result.reservation.status == ReservationStatus.PENDING
