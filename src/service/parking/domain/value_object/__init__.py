"""Parking Domain Value Objects"""

from src.service.parking.domain.value_object.addon_snapshot import AddonSnapshot
from src.service.parking.domain.value_object.contact_info import ContactInfo
from src.service.parking.domain.value_object.line_item import LineItem

__all__ = ['AddonSnapshot', 'ContactInfo', 'LineItem']
