from pydantic import Field
from typing import Optional
from decimal import Decimal

from .base import CamelModel


class CartItemCreate(CamelModel):
    menu_item_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class CartItemUpdate(CamelModel):
    quantity: int = Field(..., ge=1)


class CartLineView(CamelModel):
    id: int
    menu_item_id: str
    quantity: int
    name: Optional[str] = None
    unit_price: Optional[Decimal] = None  # текущая цена из каталога
    line_total: Decimal = Decimal("0.00")
    available: bool = True
