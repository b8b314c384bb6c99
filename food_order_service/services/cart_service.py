import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import CrossRestaurantConflictError, NotFoundError, ValidationError
from ..models.cart import Cart
from ..models.cart_line import CartLine
from ..schemas.cart import CartSummary
from ..schemas.cart_line import CartLineView
from ..stores.cart_store import CartStore
from .catalog_client import CatalogClient, CatalogLookup

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _require_positive_quantity(quantity: int):
    if quantity is None or quantity < 1:
        raise ValidationError("Quantity must be at least 1", errors=["quantity"])


class CartService:
    def __init__(self, db: Session, catalog: Optional[CatalogLookup] = None):
        self.db = db
        self.catalog = catalog or CatalogClient()
        self.store = CartStore(db)

    def get_or_create_cart(self, customer_id: str) -> Cart:
        """Получить или создать корзину покупателя"""
        return self.store.get_or_create(customer_id)

    def add_item(self, customer_id: str, menu_item_id: str, quantity: int) -> Cart:
        """Добавить блюдо в корзину.

        Корзина привязана к одному ресторану. Повторное добавление того же
        блюда увеличивает количество в существующей позиции.
        """
        _require_positive_quantity(quantity)

        menu_item = self.catalog.get_menu_item(menu_item_id)
        if menu_item is None or not menu_item.is_available:
            logger.warning(f"Menu item {menu_item_id} not found or not available")
            raise NotFoundError("Menu item not found or not available")

        def mutate(cart: Cart):
            if cart.lines and cart.restaurant_id != menu_item.restaurant_id:
                raise CrossRestaurantConflictError(
                    "Cannot add items from different restaurants. Clear cart first."
                )

            if not cart.lines:
                cart.restaurant_id = menu_item.restaurant_id

            line = cart.find_line_for_item(menu_item_id)
            if line:
                line.quantity += quantity
            else:
                cart.lines.append(CartLine(menu_item_id=menu_item_id, quantity=quantity))

        try:
            cart = self.store.modify(customer_id, mutate)
        except CrossRestaurantConflictError:
            logger.warning(
                f"Customer {customer_id} tried to add item {menu_item_id} "
                f"from restaurant {menu_item.restaurant_id} to a cart bound to another restaurant"
            )
            raise

        logger.info(f"Added {quantity} x {menu_item_id} to cart of customer {customer_id}")
        return cart

    def update_item_quantity(self, customer_id: str, line_id: int, quantity: int) -> Cart:
        """Заменить количество в позиции корзины"""
        _require_positive_quantity(quantity)

        def mutate(cart: Cart):
            line = cart.find_line(line_id)
            if line is None:
                raise NotFoundError("Item not found in cart")
            line.quantity = quantity

        cart = self.store.modify(customer_id, mutate, create=False)
        logger.info(f"Cart line {line_id} of customer {customer_id} set to quantity {quantity}")
        return cart

    def remove_item(self, customer_id: str, line_id: int) -> Cart:
        """Удалить позицию из корзины"""

        def mutate(cart: Cart):
            line = cart.find_line(line_id)
            if line is None:
                raise NotFoundError("Item not found in cart")
            cart.lines.remove(line)
            # Пустая корзина не привязана к ресторану
            if not cart.lines:
                cart.restaurant_id = None

        cart = self.store.modify(customer_id, mutate, create=False)
        logger.info(f"Removed line {line_id} from cart of customer {customer_id}")
        return cart

    def clear_cart(self, customer_id: str) -> Cart:
        """Очистить корзину (повторный вызов ничего не меняет)"""
        cart = self.store.modify(customer_id, lambda c: c.clear(), create=False)
        logger.info(f"Cart cleared for customer {customer_id}")
        return cart

    def compute_total(self, cart: Cart) -> Decimal:
        """Сумма корзины по текущим ценам каталога (только для отображения)"""
        return self.summarize(cart).total_amount

    def summarize(self, cart: Cart) -> CartSummary:
        """Получить корзину с подсчётом итогов"""
        items = []
        total_amount = ZERO
        total_items = 0

        for line in cart.lines:
            menu_item = self.catalog.get_menu_item(line.menu_item_id)
            view = CartLineView(id=line.id, menu_item_id=line.menu_item_id, quantity=line.quantity)
            if menu_item is None:
                view.available = False
            else:
                view.name = menu_item.name
                view.unit_price = menu_item.price
                view.available = menu_item.is_available
                view.line_total = menu_item.price * line.quantity
                total_amount += view.line_total
            total_items += line.quantity
            items.append(view)

        return CartSummary(
            id=cart.id,
            customer_id=cart.customer_id,
            restaurant_id=cart.restaurant_id,
            items=items,
            total_items=total_items,
            total_amount=total_amount,
            updated_at=cart.updated_at
        )
