"""
Unit tests for InMemoryAvailabilityLedger

Test Focus:
1. Check-and-hold never oversells, even under concurrent callers
2. Rejections carry the reason and the current remaining count
3. Release and capacity edits keep consumed within [0, capacity]
4. Reservation-bound holds and releases move the counter only after the row write
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.platform.exception.exceptions import (
    CapacityError,
    CapacityRejection,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.service.parking.driven_adapter.ledger.in_memory_availability_ledger import (
    InMemoryAvailabilityLedger,
)


@pytest.fixture
def reservation_repo() -> AsyncMock:
    repo = AsyncMock()
    repo.create.side_effect = lambda *, reservation: reservation
    repo.mark_hold_released.return_value = True
    return repo


@pytest.fixture
async def ledger(reservation_repo) -> InMemoryAvailabilityLedger:
    ledger = InMemoryAvailabilityLedger(
        reservation_command_repo=reservation_repo, max_per_order=10
    )
    await ledger.register_event(event_id='evt-1', capacity=18)
    return ledger


@pytest.mark.unit
class TestReserve:
    @pytest.mark.asyncio
    async def test_reserve_decrements_remaining(self, ledger):
        allocation = await ledger.reserve(event_id='evt-1', quantity=4)

        assert allocation.quantity == 4
        assert allocation.remaining == 14
        assert (await ledger.get_availability(event_id='evt-1')).consumed == 4

    @pytest.mark.asyncio
    async def test_insufficient_capacity_reports_remaining(self, ledger):
        await ledger.reserve(event_id='evt-1', quantity=10)
        await ledger.reserve(event_id='evt-1', quantity=6)

        with pytest.raises(CapacityError) as exc_info:
            await ledger.reserve(event_id='evt-1', quantity=3)

        assert exc_info.value.reason == CapacityRejection.INSUFFICIENT_CAPACITY
        assert exc_info.value.remaining == 2
        assert exc_info.value.message == 'Only 2 spots remaining'
        # Nothing was held by the rejected call
        assert (await ledger.get_availability(event_id='evt-1')).remaining == 2

    @pytest.mark.asyncio
    async def test_sold_out(self, ledger):
        await ledger.reserve(event_id='evt-1', quantity=9)
        await ledger.reserve(event_id='evt-1', quantity=9)

        with pytest.raises(CapacityError) as exc_info:
            await ledger.reserve(event_id='evt-1', quantity=1)

        assert exc_info.value.reason == CapacityRejection.SOLD_OUT
        assert exc_info.value.remaining == 0

    @pytest.mark.asyncio
    async def test_over_per_order_limit_is_checked_first(self, ledger):
        with pytest.raises(CapacityError) as exc_info:
            await ledger.reserve(event_id='evt-1', quantity=11)

        assert exc_info.value.reason == CapacityRejection.OVER_PER_ORDER_LIMIT
        assert exc_info.value.remaining == 18

    @pytest.mark.asyncio
    async def test_quantity_must_be_positive(self, ledger):
        with pytest.raises(ValidationError):
            await ledger.reserve(event_id='evt-1', quantity=0)

    @pytest.mark.asyncio
    async def test_unknown_event(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.reserve(event_id='missing', quantity=1)

    @pytest.mark.asyncio
    async def test_concurrent_reserves_never_oversell(self, reservation_repo):
        """
        Given: an event with capacity 1
        When: two buyers reserve 1 spot at the same time
        Then: exactly one succeeds and the other is SOLD_OUT
        """
        # Arrange
        ledger = InMemoryAvailabilityLedger(
            reservation_command_repo=reservation_repo, max_per_order=10
        )
        await ledger.register_event(event_id='evt-1', capacity=1)

        # Act
        results = await asyncio.gather(
            ledger.reserve(event_id='evt-1', quantity=1),
            ledger.reserve(event_id='evt-1', quantity=1),
            return_exceptions=True,
        )

        # Assert
        errors = [r for r in results if isinstance(r, CapacityError)]
        assert len(errors) == 1
        assert errors[0].reason == CapacityRejection.SOLD_OUT
        assert (await ledger.get_availability(event_id='evt-1')).consumed == 1

    @pytest.mark.asyncio
    async def test_many_concurrent_reserves_fill_exactly_to_capacity(self, ledger):
        results = await asyncio.gather(
            *(ledger.reserve(event_id='evt-1', quantity=1) for _ in range(30)),
            return_exceptions=True,
        )

        assert sum(1 for r in results if not isinstance(r, Exception)) == 18
        assert (await ledger.get_availability(event_id='evt-1')).remaining == 0


@pytest.mark.unit
class TestReleaseAndCapacity:
    @pytest.mark.asyncio
    async def test_release_returns_spots(self, ledger):
        await ledger.reserve(event_id='evt-1', quantity=5)

        availability = await ledger.release(event_id='evt-1', quantity=3)

        assert availability.consumed == 2
        assert availability.remaining == 16

    @pytest.mark.asyncio
    async def test_release_never_goes_below_zero(self, ledger):
        await ledger.reserve(event_id='evt-1', quantity=1)

        availability = await ledger.release(event_id='evt-1', quantity=5)

        assert availability.consumed == 0
        assert availability.remaining == 18

    @pytest.mark.asyncio
    async def test_update_capacity(self, ledger):
        await ledger.reserve(event_id='evt-1', quantity=5)

        availability = await ledger.update_capacity(event_id='evt-1', capacity=20)

        assert availability.capacity == 20
        assert availability.remaining == 15

    @pytest.mark.asyncio
    async def test_capacity_cannot_drop_below_consumed(self, ledger):
        await ledger.reserve(event_id='evt-1', quantity=5)

        with pytest.raises(ValidationError):
            await ledger.update_capacity(event_id='evt-1', capacity=4)

    @pytest.mark.asyncio
    async def test_register_twice_conflicts(self, ledger):
        with pytest.raises(ConflictError):
            await ledger.register_event(event_id='evt-1', capacity=5)


@pytest.mark.unit
class TestReservationBoundHolds:
    @pytest.mark.asyncio
    async def test_hold_stores_the_pending_row(
        self, ledger, reservation_repo, event, make_reservation
    ):
        reservation = make_reservation(event, quantity=3)

        allocation = await ledger.reserve(
            event_id='evt-1', quantity=3, reservation=reservation
        )

        assert allocation.remaining == 15
        reservation_repo.create.assert_awaited_once_with(reservation=reservation)

    @pytest.mark.asyncio
    async def test_failed_row_write_takes_no_hold(
        self, ledger, reservation_repo, event, make_reservation
    ):
        reservation_repo.create.side_effect = ConnectionError('db down')

        with pytest.raises(ConnectionError):
            await ledger.reserve(
                event_id='evt-1', quantity=3, reservation=make_reservation(event, quantity=3)
            )

        assert (await ledger.get_availability(event_id='evt-1')).consumed == 0

    @pytest.mark.asyncio
    async def test_refused_hold_stores_nothing(
        self, ledger, reservation_repo, event, make_reservation
    ):
        await ledger.reserve(event_id='evt-1', quantity=10)
        await ledger.reserve(event_id='evt-1', quantity=7)

        with pytest.raises(CapacityError) as exc_info:
            await ledger.reserve(
                event_id='evt-1', quantity=2, reservation=make_reservation(event, quantity=2)
            )

        assert exc_info.value.reason == CapacityRejection.INSUFFICIENT_CAPACITY
        reservation_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_release_happens_once_per_reservation(self, ledger, reservation_repo):
        """
        Given: a reservation holding 4 spots
        When: its release is delivered twice
        Then: the second call finds hold_released already set and changes nothing
        """
        # Arrange
        await ledger.reserve(event_id='evt-1', quantity=4)
        reservation_repo.mark_hold_released.side_effect = [True, False]

        # Act
        first = await ledger.release(event_id='evt-1', quantity=4, reservation_id='r1')
        second = await ledger.release(event_id='evt-1', quantity=4, reservation_id='r1')

        # Assert
        assert first.consumed == 0
        assert second.consumed == 0
        assert reservation_repo.mark_hold_released.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_flag_write_keeps_the_hold(self, ledger, reservation_repo):
        await ledger.reserve(event_id='evt-1', quantity=4)
        reservation_repo.mark_hold_released.side_effect = ConnectionError('db down')

        with pytest.raises(ConnectionError):
            await ledger.release(event_id='evt-1', quantity=4, reservation_id='r1')

        # Still held, so the sweeper's retry gives the 4 spots back exactly once
        assert (await ledger.get_availability(event_id='evt-1')).consumed == 4
