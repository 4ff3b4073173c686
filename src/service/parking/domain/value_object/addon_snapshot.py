import attrs


@attrs.define(frozen=True)
class AddonSnapshot:
    """Copy of an add-on's name and price frozen on the reservation"""

    addon_id: str
    name: str
    price: int
