import attrs


@attrs.define(frozen=True)
class Allocation:
    """Capacity successfully held for one reservation"""

    event_id: str
    quantity: int
    remaining: int


@attrs.define(frozen=True)
class Availability:
    event_id: str
    capacity: int
    consumed: int  # PENDING holds + PAID

    @property
    def remaining(self) -> int:
        return max(0, self.capacity - self.consumed)

    @property
    def is_sold_out(self) -> bool:
        return self.remaining == 0


@attrs.define(frozen=True)
class EventAvailability:
    """Read model for the availability endpoint"""

    event_id: str
    capacity: int
    held: int
    sold: int
    remaining: int
