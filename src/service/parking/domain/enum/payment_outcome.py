from enum import StrEnum


class PaymentOutcome(StrEnum):
    PAID = 'paid'
    FAILED = 'failed'  # declined, expired or abandoned checkout
