from datetime import datetime
from typing import Dict, List, Optional

import attrs

from src.service.parking.domain.enum.payment_outcome import PaymentOutcome
from src.service.parking.domain.value_object.line_item import LineItem


@attrs.define(frozen=True)
class CheckoutRequest:
    line_items: List[LineItem]
    customer_email: str
    metadata: Dict[str, str]
    success_url: str
    cancel_url: str
    expires_at: datetime
    discount: int = 0
    discount_label: Optional[str] = None

    @property
    def amount_due(self) -> int:
        return sum(item.amount for item in self.line_items) - self.discount


@attrs.define(frozen=True)
class CheckoutSession:
    session_id: str
    redirect_url: str


@attrs.define(frozen=True)
class PaymentEvent:
    """Gateway notification normalised to what reconciliation needs"""

    outcome: PaymentOutcome
    session_id: Optional[str]
    reservation_id: Optional[str] = None
    event_id: Optional[str] = None
    gateway_event_id: Optional[str] = None
    gateway_event_type: Optional[str] = None
