from .cart_store import CartStore
from .order_store import OrderStore

__all__ = ["CartStore", "OrderStore"]
