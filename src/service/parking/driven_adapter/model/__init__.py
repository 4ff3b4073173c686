"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.parking.driven_adapter.model.event_capacity_model import EventCapacityModel
from src.service.parking.driven_adapter.model.event_model import (
    AddonModel,
    EventModel,
    PriceTierModel,
)
from src.service.parking.driven_adapter.model.promo_code_model import PromoCodeModel
from src.service.parking.driven_adapter.model.reservation_model import (
    ReservationAddonModel,
    ReservationModel,
)

__all__ = [
    'AddonModel',
    'EventCapacityModel',
    'EventModel',
    'PriceTierModel',
    'PromoCodeModel',
    'ReservationAddonModel',
    'ReservationModel',
]
