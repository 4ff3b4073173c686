"""
Pricing Calculator

Fixed order, each derived amount rounded on its own:

    unit_price   = active tier price, else base price
    addons_total = sum of selected add-on prices (flat per order)
    gross        = unit_price * quantity + addons_total
    subtotal     = max(0, gross - discount)
    service_fee  = round(subtotal * service_fee_pct)
    tax          = round((subtotal + service_fee) * tax_pct)
    total        = subtotal + service_fee + tax

Tax is charged on subtotal plus fee, not on subtotal alone.
"""

from datetime import datetime
from typing import List, Optional, Sequence

import attrs

from src.platform.exception.exceptions import ValidationError
from src.service.parking.domain.entity.event_entity import Addon, Event
from src.service.parking.domain.price_tier_resolver import resolve_unit_price
from src.service.parking.domain.promo_code_validator import NO_PROMO, PromoResult, ValidPromo
from src.service.parking.domain.value_object.line_item import LineItem
from src.service.parking.domain.value_object.money import apply_rate


@attrs.define(frozen=True)
class PricingBreakdown:
    unit_price: int
    quantity: int
    addons_total: int
    gross: int
    discount: int  # effective discount, never more than gross
    subtotal: int
    service_fee: int
    tax: int
    total: int
    tier_name: Optional[str] = None
    promo_code: Optional[str] = None
    promo_code_id: Optional[str] = None

    def line_items(self, *, event_title: str) -> List[LineItem]:
        """Gateway line items; the discount travels separately (see `discount`)"""
        items = [
            LineItem(
                description=f'{event_title} parking',
                unit_amount=self.unit_price,
                quantity=self.quantity,
            )
        ]
        if self.addons_total > 0:
            items.append(LineItem(description='Add-ons', unit_amount=self.addons_total))
        if self.service_fee > 0:
            items.append(LineItem(description='Service fee', unit_amount=self.service_fee))
        if self.tax > 0:
            items.append(LineItem(description='Estimated tax', unit_amount=self.tax))
        return items


def calculate_price(
    event: Event,
    *,
    quantity: int,
    addons: Sequence[Addon] = (),
    promo: PromoResult = NO_PROMO,
    now: datetime,
) -> PricingBreakdown:
    if quantity < 1:
        raise ValidationError('Quantity must be at least 1')
    event_addon_ids = {addon.id for addon in event.addons}
    foreign = [addon.name for addon in addons if addon.id not in event_addon_ids]
    if foreign:
        raise ValidationError(f'Add-ons do not belong to this event: {", ".join(foreign)}')

    unit_price, tier_name = resolve_unit_price(event, now)
    addons_total = sum(addon.price for addon in addons)
    gross = unit_price * quantity + addons_total

    promo_code = promo_code_id = None
    subtotal = gross
    if isinstance(promo, ValidPromo):
        subtotal = max(0, gross - promo.promo.discount_for(gross))
        promo_code, promo_code_id = promo.promo.code, promo.promo.id

    service_fee = apply_rate(subtotal, event.service_fee_pct)
    tax = apply_rate(subtotal + service_fee, event.tax_pct)

    return PricingBreakdown(
        unit_price=unit_price,
        quantity=quantity,
        addons_total=addons_total,
        gross=gross,
        discount=gross - subtotal,
        subtotal=subtotal,
        service_fee=service_fee,
        tax=tax,
        total=subtotal + service_fee + tax,
        tier_name=tier_name,
        promo_code=promo_code,
        promo_code_id=promo_code_id,
    )
