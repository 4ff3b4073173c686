from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from src.platform.exception.exceptions import ValidationError
from src.service.parking.domain.entity.promo_code_entity import PromoCode, normalize_code
from src.service.parking.domain.enum.promo_rejection import PromoRejection
from src.service.parking.domain.promo_code_validator import NoPromo, ValidPromo, validate_promo


TZ = 'America/New_York'


@pytest.mark.unit
class TestValidatePromo:
    def test_no_code_entered(self, now):
        result = validate_promo(None, now=now, tz_name=TZ)

        assert result == NoPromo(reason=PromoRejection.EMPTY)

    def test_unknown_code(self, now):
        result = validate_promo(None, now=now, tz_name=TZ, code='NOPE')

        assert isinstance(result, NoPromo)
        assert result.reason == PromoRejection.NOT_FOUND

    def test_valid_code(self, now):
        promo = PromoCode.create(code='earlybird10', percent_off='0.10')

        result = validate_promo(promo, now=now, tz_name=TZ)

        assert isinstance(result, ValidPromo)
        assert result.promo.code == 'EARLYBIRD10'

    def test_not_started(self, now):
        promo = PromoCode.create(code='LATER', amount_off=500, starts_at=datetime(2026, 10, 21))

        assert validate_promo(promo, now=now, tz_name=TZ).reason == PromoRejection.NOT_STARTED

    def test_expired(self, now):
        promo = PromoCode.create(code='GONE', amount_off=500, ends_at=datetime(2026, 10, 19))

        assert validate_promo(promo, now=now, tz_name=TZ).reason == PromoRejection.EXPIRED

    def test_window_bounds_are_inclusive(self, now):
        # NOW is exactly 12:00 in New York
        promo = PromoCode.create(
            code='NOON',
            amount_off=500,
            starts_at=datetime(2026, 10, 20, 12, 0),
            ends_at=datetime(2026, 10, 20, 12, 0),
        )

        assert isinstance(validate_promo(promo, now=now, tz_name=TZ), ValidPromo)

    def test_exhausted(self, now):
        promo = PromoCode.create(code='ONCE', amount_off=500, max_uses=1)
        promo.used = 1

        assert validate_promo(promo, now=now, tz_name=TZ).reason == PromoRejection.EXHAUSTED


@pytest.mark.unit
class TestPromoCodeCreate:
    def test_code_is_normalized(self):
        assert normalize_code('  groupFive ') == 'GROUPFIVE'
        assert normalize_code(None) == ''

    def test_needs_exactly_one_discount_kind(self):
        with pytest.raises(ValidationError):
            PromoCode.create(code='BOTH', percent_off='0.1', amount_off=100)
        with pytest.raises(ValidationError):
            PromoCode.create(code='NEITHER')

    @pytest.mark.parametrize(
        'kwargs', [{'percent_off': '0'}, {'amount_off': 0}, {'amount_off': -5}]
    )
    def test_discount_must_be_positive(self, kwargs):
        with pytest.raises(ValidationError):
            PromoCode.create(code='ZERO', **kwargs)

    def test_max_uses_must_be_positive(self):
        with pytest.raises(ValidationError):
            PromoCode.create(code='NONE', amount_off=100, max_uses=0)

    def test_discount_for(self):
        assert PromoCode.create(code='P', percent_off='0.10').discount_for(7000) == 700
        # Fixed discount is not capped here, pricing floors the subtotal
        assert PromoCode.create(code='F', amount_off=9000).discount_for(7000) == 9000

    def test_mixed_naive_and_aware_window_is_compared(self):
        # Naive bounds are read as UTC, the same way stored values come back
        promo = PromoCode.create(
            code='MIXED',
            amount_off=500,
            starts_at=datetime(2026, 10, 20, 12, 0),
            ends_at=datetime(2026, 10, 20, 9, 0, tzinfo=ZoneInfo('America/New_York')),
        )
        assert promo.code == 'MIXED'

        with pytest.raises(ValidationError):
            PromoCode.create(
                code='REVERSED',
                amount_off=500,
                starts_at=datetime(2026, 10, 20, 14, 0),
                ends_at=datetime(2026, 10, 20, 9, 0, tzinfo=ZoneInfo('America/New_York')),
            )
