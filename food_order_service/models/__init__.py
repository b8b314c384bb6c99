from .cart import Cart
from .cart_line import CartLine
from .order import Order, OrderStatus, TERMINAL_STATUSES, can_transition
from .order_line import OrderLine

__all__ = [
    "Cart",
    "CartLine",
    "Order",
    "OrderStatus",
    "TERMINAL_STATUSES",
    "can_transition",
    "OrderLine"
]
