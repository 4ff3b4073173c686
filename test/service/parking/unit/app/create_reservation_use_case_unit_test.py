"""
Unit tests for CreateReservationUseCase

Test Focus:
1. Happy path: hold together with the PENDING row, open checkout, attach session
2. Promo codes never fail a booking
3. Fail fast before any hold is taken (bad contact, unknown event)
4. Compensation: every failure after the hold gives the spots back exactly once
"""

from unittest.mock import AsyncMock

import pytest

from src.platform.exception.exceptions import (
    CapacityError,
    CapacityRejection,
    GatewayError,
    NotFoundError,
    ValidationError,
)
from src.service.parking.app.command.create_reservation_use_case import CreateReservationUseCase
from src.service.parking.app.dto.availability import Allocation
from src.service.parking.app.dto.payment import CheckoutSession
from src.service.parking.domain.entity.event_entity import Addon
from src.service.parking.domain.entity.promo_code_entity import PromoCode
from src.service.parking.domain.enum.reservation_status import ReservationStatus


@pytest.fixture
def use_case(repos) -> CreateReservationUseCase:
    return CreateReservationUseCase(
        event_query_repo=repos.event_query_repo,
        promo_code_repo=repos.promo_code_repo,
        reservation_command_repo=repos.reservation_command_repo,
        availability_ledger=repos.availability_ledger,
        payment_gateway=repos.payment_gateway,
    )


@pytest.fixture
def ready(repos, event):
    """Event exists, capacity is available and the gateway accepts checkouts"""
    repos.event_query_repo.get_by_id.return_value = event
    repos.availability_ledger.reserve.return_value = Allocation(
        event_id=event.id, quantity=2, remaining=16
    )
    repos.payment_gateway.create_checkout_session.return_value = CheckoutSession(
        session_id='mock_cs_1', redirect_url='http://test/mock-checkout/mock_cs_1'
    )
    return repos


@pytest.mark.unit
class TestCreateReservation:
    @pytest.mark.asyncio
    async def test_successful_reservation(self, use_case, ready, event, make_contact, now):
        """
        Given: an event with capacity and a working gateway
        When: a buyer reserves 2 spots
        Then:
          - 2 spots are held in the ledger together with the priced PENDING row
          - the checkout session id is attached and the redirect url returned
        """
        # Act
        result = await use_case.execute(
            event_id=event.id, quantity=2, contact=make_contact(), now=now
        )

        # Assert
        reservation = result.reservation
        kwargs = ready.availability_ledger.reserve.await_args.kwargs
        assert kwargs['event_id'] == event.id
        assert kwargs['quantity'] == 2
        assert kwargs['reservation'].id == reservation.id
        assert kwargs['reservation'].status == ReservationStatus.PENDING
        ready.reservation_command_repo.create.assert_not_awaited()
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.total == 7420
        assert reservation.payment_session_id == 'mock_cs_1'
        assert result.redirect_url == 'http://test/mock-checkout/mock_cs_1'
        ready.reservation_command_repo.set_payment_session.assert_awaited_once_with(
            reservation_id=reservation.id, session_id='mock_cs_1'
        )
        ready.availability_ledger.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_checkout_request_matches_pricing(
        self, use_case, ready, event, make_contact, now
    ):
        result = await use_case.execute(
            event_id=event.id, quantity=2, contact=make_contact(), now=now
        )

        request = ready.payment_gateway.create_checkout_session.await_args.kwargs['request']
        assert request.amount_due == result.reservation.total
        assert request.customer_email == 'jamie@example.com'
        assert request.metadata == {'reservation_id': result.reservation.id, 'event_id': event.id}
        assert request.success_url.endswith('/success?session_id={CHECKOUT_SESSION_ID}')
        assert request.cancel_url.endswith(f'/cancel?reservation={result.reservation.id}')
        assert request.expires_at < result.reservation.hold_expires_at

    @pytest.mark.asyncio
    async def test_valid_promo_discounts_the_order(
        self, use_case, ready, event, make_contact, now
    ):
        ready.promo_code_repo.get_by_code.return_value = PromoCode.create(
            code='EARLYBIRD10', percent_off='0.10'
        )

        result = await use_case.execute(
            event_id=event.id,
            quantity=2,
            contact=make_contact(),
            promo_code=' earlybird10 ',
            now=now,
        )

        ready.promo_code_repo.get_by_code.assert_awaited_once_with(code='EARLYBIRD10')
        assert result.reservation.discount == 700
        assert result.reservation.total == 6678
        assert result.reservation.promo_code == 'EARLYBIRD10'
        request = ready.payment_gateway.create_checkout_session.await_args.kwargs['request']
        assert request.discount == 700
        assert request.discount_label == 'Discount (EARLYBIRD10)'

    @pytest.mark.asyncio
    async def test_unknown_promo_is_ignored(self, use_case, ready, event, make_contact, now):
        result = await use_case.execute(
            event_id=event.id, quantity=2, contact=make_contact(), promo_code='BOGUS', now=now
        )

        assert result.reservation.discount == 0
        assert result.reservation.promo_code is None
        assert result.reservation.total == 7420

    @pytest.mark.asyncio
    async def test_selected_addons_are_snapshotted(
        self, use_case, repos, make_event, make_contact, now
    ):
        tailgate = Addon.create(name='Tailgate Package', price=2000)
        event = make_event(addons=[tailgate])
        repos.event_query_repo.get_by_id.return_value = event
        repos.availability_ledger.reserve.return_value = Allocation(
            event_id=event.id, quantity=1, remaining=17
        )
        repos.payment_gateway.create_checkout_session.return_value = CheckoutSession(
            session_id='mock_cs_2', redirect_url='http://test/mock-checkout/mock_cs_2'
        )

        result = await use_case.execute(
            event_id=event.id,
            quantity=1,
            contact=make_contact(),
            addon_ids=[tailgate.id],
            now=now,
        )

        assert result.reservation.addons_total == 2000
        assert [a.name for a in result.reservation.addons] == ['Tailgate Package']


@pytest.mark.unit
class TestCreateReservationFailFast:
    @pytest.mark.asyncio
    async def test_invalid_contact_takes_no_hold(self, use_case, ready, event, make_contact, now):
        with pytest.raises(ValidationError):
            await use_case.execute(
                event_id=event.id, quantity=1, contact=make_contact(email='nope'), now=now
            )

        ready.availability_ledger.reserve.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_event(self, use_case, repos, make_contact, now):
        repos.event_query_repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await use_case.execute(event_id='missing', quantity=1, contact=make_contact(), now=now)

        repos.availability_ledger.reserve.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_zero_quantity(self, use_case, ready, event, make_contact, now):
        with pytest.raises(ValidationError):
            await use_case.execute(event_id=event.id, quantity=0, contact=make_contact(), now=now)

    @pytest.mark.asyncio
    async def test_sold_out_persists_nothing(self, use_case, ready, event, make_contact, now):
        ready.availability_ledger.reserve.side_effect = CapacityError(
            reason=CapacityRejection.SOLD_OUT, remaining=0
        )

        with pytest.raises(CapacityError) as exc_info:
            await use_case.execute(event_id=event.id, quantity=2, contact=make_contact(), now=now)

        assert exc_info.value.reason == CapacityRejection.SOLD_OUT
        ready.reservation_command_repo.create.assert_not_awaited()
        ready.payment_gateway.create_checkout_session.assert_not_awaited()


@pytest.mark.unit
class TestCreateReservationCompensation:
    @pytest.mark.asyncio
    async def test_gateway_failure_cancels_and_releases(
        self, use_case, ready, event, make_contact, now
    ):
        """
        Given: the gateway cannot open a checkout session
        When: a buyer reserves 2 spots
        Then:
          - GatewayError reaches the caller
          - the PENDING row is canceled with a compare-and-set
          - the 2 held spots are released
        """
        ready.payment_gateway.create_checkout_session.side_effect = GatewayError('down')

        with pytest.raises(GatewayError):
            await use_case.execute(event_id=event.id, quantity=2, contact=make_contact(), now=now)

        kwargs = ready.reservation_command_repo.transition_status.await_args.kwargs
        assert kwargs['reservation'].status == ReservationStatus.CANCELED
        assert kwargs['expected_status'] == ReservationStatus.PENDING
        ready.availability_ledger.release.assert_awaited_once_with(
            event_id=event.id, quantity=2, reservation_id=kwargs['reservation'].id
        )

    @pytest.mark.asyncio
    async def test_failed_hold_write_leaves_nothing_to_undo(
        self, use_case, ready, event, make_contact, now
    ):
        # The hold and its PENDING row commit together, so neither exists
        ready.availability_ledger.reserve.side_effect = ConnectionError('db down')

        with pytest.raises(ConnectionError):
            await use_case.execute(event_id=event.id, quantity=2, contact=make_contact(), now=now)

        ready.reservation_command_repo.transition_status.assert_not_awaited()
        ready.availability_ledger.release.assert_not_awaited()
        ready.payment_gateway.create_checkout_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_cancel_leaves_pending_row_for_sweeper(
        self, use_case, ready, event, make_contact, now
    ):
        """
        Given: the gateway is down and so is the database, right after the hold
        When: a buyer reserves 2 spots
        Then:
          - the GatewayError reaches the caller
          - nothing is released, the row stays PENDING until its hold expires
        """
        ready.payment_gateway.create_checkout_session.side_effect = GatewayError('down')
        ready.reservation_command_repo.transition_status.side_effect = ConnectionError('db down')

        with pytest.raises(GatewayError):
            await use_case.execute(event_id=event.id, quantity=2, contact=make_contact(), now=now)

        held = ready.availability_ledger.reserve.await_args.kwargs['reservation']
        assert held.status == ReservationStatus.PENDING
        assert held.hold_expires_at is not None
        ready.availability_ledger.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lost_cancel_race_does_not_release_twice(
        self, use_case, ready, event, make_contact, now
    ):
        # The sweeper already canceled the row and released its spots
        ready.payment_gateway.create_checkout_session.side_effect = GatewayError('down')
        ready.reservation_command_repo.transition_status.return_value = False

        with pytest.raises(GatewayError):
            await use_case.execute(event_id=event.id, quantity=2, contact=make_contact(), now=now)

        ready.availability_ledger.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_attach_session_failure_also_expires_session(
        self, use_case, ready, event, make_contact, now
    ):
        ready.reservation_command_repo.set_payment_session.side_effect = RuntimeError('db down')

        with pytest.raises(RuntimeError):
            await use_case.execute(event_id=event.id, quantity=2, contact=make_contact(), now=now)

        ready.availability_ledger.release.assert_awaited_once()
        ready.payment_gateway.expire_session.assert_awaited_once_with(session_id='mock_cs_1')

    @pytest.mark.asyncio
    async def test_failed_compensation_keeps_original_error(
        self, use_case, ready, event, make_contact, now
    ):
        ready.payment_gateway.create_checkout_session.side_effect = GatewayError('down')
        ready.availability_ledger.release = AsyncMock(side_effect=RuntimeError('ledger down'))

        with pytest.raises(GatewayError):
            await use_case.execute(event_id=event.id, quantity=2, contact=make_contact(), now=now)
