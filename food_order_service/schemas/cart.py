from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from .base import CamelModel
from .cart_line import CartLineView


class CartSummary(CamelModel):
    id: int
    customer_id: str
    restaurant_id: Optional[str] = None
    items: List[CartLineView] = []
    total_items: int = 0
    total_amount: Decimal = Decimal("0.00")
    updated_at: Optional[datetime] = None


class CartResponse(CamelModel):
    message: str
    cart: CartSummary
