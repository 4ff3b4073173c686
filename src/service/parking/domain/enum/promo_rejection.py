from enum import StrEnum


class PromoRejection(StrEnum):
    EMPTY = 'EMPTY'
    NOT_FOUND = 'NOT_FOUND'
    NOT_STARTED = 'NOT_STARTED'
    EXPIRED = 'EXPIRED'
    EXHAUSTED = 'EXHAUSTED'
