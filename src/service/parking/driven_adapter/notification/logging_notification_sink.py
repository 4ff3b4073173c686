"""Confirmation delivery: email always, SMS when the contact left a phone number."""

from datetime import datetime, timezone
from typing import List, Optional

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.interface.i_notification_sink import INotificationSink
from src.service.parking.domain.entity.event_entity import Event
from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.value_object.event_time import to_event_time
from src.service.parking.domain.value_object.money import format_cents


class LoggingNotificationSink(INotificationSink):
    """
    Writes messages to the log instead of a provider.

    A channel that is switched off in settings is skipped with a log line, the way an
    unconfigured mail or SMS provider would be. Delivery problems are logged and never
    raised, a confirmed payment must not be undone by a notification.
    """

    def __init__(
        self,
        *,
        email_enabled: Optional[bool] = None,
        sms_enabled: Optional[bool] = None,
    ) -> None:
        self.email_enabled = settings.EMAIL_ENABLED if email_enabled is None else email_enabled
        self.sms_enabled = settings.SMS_ENABLED if sms_enabled is None else sms_enabled
        self.sent_emails: List[dict] = []  # Store sent messages for testing
        self.sent_sms: List[dict] = []

    @Logger.io
    async def send_reservation_confirmation(
        self, *, reservation: Reservation, event: Event
    ) -> None:
        try:
            await self.send_email(
                to=reservation.contact.email,
                subject=f'Your parking for {event.title} is confirmed',
                body=self._email_body(reservation=reservation, event=event),
            )
            if reservation.contact.phone:
                await self.send_sms(
                    to=reservation.contact.phone,
                    body=(
                        f'Yard Parking: {reservation.quantity} spot(s) confirmed for '
                        f'{event.title}. Reservation {reservation.id}.'
                    ),
                )
        except Exception as e:
            Logger.base.error(
                f'📭 [NOTIFY] Confirmation for reservation {reservation.id} failed: {e}'
            )

    async def send_email(self, *, to: str, subject: str, body: str) -> None:
        if not self.email_enabled:
            Logger.base.warning('📭 [NOTIFY] Email not configured; skipping email send')
            return
        self.sent_emails.append(
            {
                'from': settings.EMAIL_FROM,
                'to': to,
                'subject': subject,
                'body': body,
                'sent_at': datetime.now(timezone.utc),
            }
        )
        Logger.base.info(f'📧 [NOTIFY] Email sent: {subject}')

    async def send_sms(self, *, to: str, body: str) -> None:
        if not self.sms_enabled or not settings.SMS_FROM_NUMBER:
            Logger.base.info('📭 [NOTIFY] SMS not configured; skipping SMS send')
            return
        self.sent_sms.append(
            {
                'from': settings.SMS_FROM_NUMBER,
                'to': to,
                'body': body,
                'sent_at': datetime.now(timezone.utc),
            }
        )
        Logger.base.info('📱 [NOTIFY] SMS sent')

    @staticmethod
    def _email_body(*, reservation: Reservation, event: Event) -> str:
        starts_at = to_event_time(event.starts_at, event.timezone)
        addon_lines = ''.join(
            f'\n  + {addon.name} ({format_cents(addon.price)})' for addon in reservation.addons
        )
        return (
            f'Hi {reservation.contact.first_name},\n\n'
            f'Your parking is confirmed.\n\n'
            f'Event: {event.title}\n'
            f'Date: {starts_at.strftime("%a %b %d, %Y %I:%M %p %Z")}\n'
            f'Spots: {reservation.quantity}{addon_lines}\n'
            f'Total paid: {format_cents(reservation.total)}\n'
            f'Reservation: {reservation.id}\n\n'
            f'Show this email at the gate.'
        )
