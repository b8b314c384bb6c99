from .cart import CartSummary, CartResponse
from .cart_line import CartLineView, CartItemCreate, CartItemUpdate
from .order import (
    DeliveryAddress,
    OrderCreate,
    OrderStatusUpdate,
    OrderResponse,
    OrderEnvelope,
    OrderListResponse,
)
from .order_line import OrderLineResponse

__all__ = [
    "CartSummary",
    "CartResponse",
    "CartLineView",
    "CartItemCreate",
    "CartItemUpdate",
    "DeliveryAddress",
    "OrderCreate",
    "OrderStatusUpdate",
    "OrderResponse",
    "OrderEnvelope",
    "OrderListResponse",
    "OrderLineResponse"
]
