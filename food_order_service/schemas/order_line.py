from decimal import Decimal

from .base import CamelModel


class OrderLineResponse(CamelModel):
    id: int
    menu_item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
