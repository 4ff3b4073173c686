import attrs


@attrs.define(frozen=True)
class LineItem:
    description: str
    unit_amount: int
    quantity: int = 1

    @property
    def amount(self) -> int:
        return self.unit_amount * self.quantity
