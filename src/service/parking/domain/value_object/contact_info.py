from typing import Optional

import attrs

from src.platform.exception.exceptions import ValidationError


@attrs.define(frozen=True)
class ContactInfo:
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    license_plate: Optional[str] = None
    notes: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()

    def validate(self) -> None:
        if not self.first_name.strip() or not self.last_name.strip():
            raise ValidationError('First and last name are required')
        local, _, domain = self.email.partition('@')
        if not local or '.' not in domain:
            raise ValidationError('A valid email is required')
