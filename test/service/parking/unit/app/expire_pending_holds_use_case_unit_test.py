from datetime import timedelta

import pytest

from src.service.parking.app.command.expire_pending_holds_use_case import (
    ExpirePendingHoldsUseCase,
)
from src.service.parking.domain.enum.reservation_status import ReservationStatus


@pytest.fixture
def use_case(repos) -> ExpirePendingHoldsUseCase:
    return ExpirePendingHoldsUseCase(
        reservation_command_repo=repos.reservation_command_repo,
        availability_ledger=repos.availability_ledger,
        payment_gateway=repos.payment_gateway,
    )


@pytest.mark.unit
class TestExpirePendingHolds:
    @pytest.mark.asyncio
    async def test_expired_holds_are_canceled_and_released(
        self, use_case, repos, event, make_reservation, now
    ):
        """
        Given: two PENDING reservations past their hold, one paid in the meantime
        When: the sweeper runs
        Then: only the one that is still PENDING is canceled and released
        """
        # Arrange
        stale = make_reservation(event, quantity=2, payment_session_id='mock_cs_1')
        paid_meanwhile = make_reservation(event, quantity=4, payment_session_id='mock_cs_2')
        repos.reservation_command_repo.list_expired_holds.return_value = [stale, paid_meanwhile]
        repos.reservation_command_repo.transition_status.side_effect = [True, False]
        later = now + timedelta(minutes=46)

        # Act
        released = await use_case.execute(now=later, batch_size=50)

        # Assert
        assert released == 1
        repos.reservation_command_repo.list_expired_holds.assert_awaited_once_with(
            now=later, limit=50
        )
        first = repos.reservation_command_repo.transition_status.await_args_list[0].kwargs
        assert first['reservation'].status == ReservationStatus.CANCELED
        assert first['expected_status'] == ReservationStatus.PENDING
        repos.availability_ledger.release.assert_awaited_once_with(
            event_id=event.id, quantity=2, reservation_id=stale.id
        )
        repos.payment_gateway.expire_session.assert_awaited_once_with(session_id='mock_cs_1')

    @pytest.mark.asyncio
    async def test_nothing_to_do(self, use_case, repos, now):
        repos.reservation_command_repo.list_expired_holds.return_value = []

        assert await use_case.execute(now=now) == 0
        repos.availability_ledger.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_canceled_rows_with_unreleased_holds_are_recovered(
        self, use_case, repos, event, make_reservation, now
    ):
        """
        Given: a CANCELED and a REFUNDED reservation whose releases failed earlier
        When: the sweeper runs
        Then: both get their spots released, keyed by reservation id
        """
        # Arrange
        canceled = make_reservation(event, quantity=2, status=ReservationStatus.CANCELED)
        refunded = make_reservation(event, quantity=3, status=ReservationStatus.REFUNDED)
        repos.reservation_command_repo.list_unreleased_holds.return_value = [canceled, refunded]

        # Act
        released = await use_case.execute(now=now, batch_size=20)

        # Assert
        assert released == 2
        repos.reservation_command_repo.list_unreleased_holds.assert_awaited_once_with(limit=20)
        calls = [c.kwargs for c in repos.availability_ledger.release.await_args_list]
        assert calls == [
            {'event_id': event.id, 'quantity': 2, 'reservation_id': canceled.id},
            {'event_id': event.id, 'quantity': 3, 'reservation_id': refunded.id},
        ]
        repos.reservation_command_repo.transition_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_release_failure_is_retried_on_the_next_pass(
        self, use_case, repos, event, make_reservation, now
    ):
        # Arrange
        stale = make_reservation(event, quantity=2)
        repos.reservation_command_repo.list_expired_holds.side_effect = [[stale], []]
        repos.availability_ledger.release.side_effect = [ConnectionError('pool timeout'), None]
        later = now + timedelta(minutes=46)

        # Act
        first = await use_case.execute(now=later)
        unreleased = [stale.cancel(now=later)]
        repos.reservation_command_repo.list_unreleased_holds.return_value = unreleased
        second = await use_case.execute(now=later)

        # Assert
        assert first == 0
        assert second == 1
        assert repos.availability_ledger.release.await_count == 2
        retried = repos.availability_ledger.release.await_args.kwargs
        assert retried == {'event_id': event.id, 'quantity': 2, 'reservation_id': stale.id}
