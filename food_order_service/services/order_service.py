import uuid
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Callable, List, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..config import settings
from ..database import utcnow
from ..exceptions import (
    ConcurrencyConflictError,
    EmptyCartError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..models.cart import Cart
from ..models.order import Order, OrderStatus, can_transition
from ..models.order_line import OrderLine
from ..schemas.order import DeliveryAddress
from ..security import Actor
from ..stores.cart_store import CartStore
from ..stores.order_store import OrderStore
from .catalog_client import CatalogClient, CatalogLookup

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = (
    ("street", "Street address is required"),
    ("city", "City is required"),
    ("state", "State is required"),
    ("zip_code", "ZIP code is required"),
)


def validate_delivery_address(address: DeliveryAddress) -> DeliveryAddress:
    """Проверить, что все поля адреса заполнены, и вернуть очищенный адрес"""
    missing = [message for field, message in ADDRESS_FIELDS if not (getattr(address, field) or "").strip()]
    if missing:
        raise ValidationError("Delivery address is incomplete", errors=missing)

    return DeliveryAddress(**{field: getattr(address, field).strip() for field, _ in ADDRESS_FIELDS})


class OrderService:
    """Сервис для работы с заказами"""

    def __init__(
            self,
            db: Session,
            catalog: Optional[CatalogLookup] = None,
            strict_transitions: Optional[bool] = None,
            max_retries: Optional[int] = None
    ):
        self.db = db
        self.max_retries = settings.order_max_retries if max_retries is None else max_retries
        self.catalog = catalog or CatalogClient()
        self.carts = CartStore(db)
        self.orders = OrderStore(db)
        if strict_transitions is None:
            strict_transitions = settings.strict_status_transitions
        self.strict_transitions = strict_transitions

    def place_order(
            self,
            customer_id: str,
            delivery_address: Union[DeliveryAddress, dict],
            delivery_instructions: Optional[str] = None
    ) -> Order:
        """Создает заказ из корзины покупателя.

        Заказ сохраняется и корзина очищается в одной транзакции. Версия
        корзины проверяется при коммите, поэтому параллельный или повторный
        вызов по той же корзине откатится и увидит уже пустую корзину.
        """
        if isinstance(delivery_address, dict):
            delivery_address = DeliveryAddress.model_validate(delivery_address)

        for attempt in range(1, self.carts.max_retries + 1):
            cart = self.carts.find(customer_id)
            if cart is None or not cart.lines:
                raise EmptyCartError("Cart is empty")

            lines, total_amount = self._snapshot_lines(cart)
            address = validate_delivery_address(delivery_address)

            now = utcnow()
            order = Order(
                id=str(uuid.uuid4()),
                customer_id=customer_id,
                restaurant_id=cart.restaurant_id,
                status=OrderStatus.PENDING,
                total_amount=total_amount,
                delivery_street=address.street,
                delivery_city=address.city,
                delivery_state=address.state,
                delivery_zip_code=address.zip_code,
                delivery_instructions=delivery_instructions,
                created_at=now,
                updated_at=now,
                estimated_delivery_time=now + timedelta(minutes=settings.estimated_delivery_minutes),
                lines=lines
            )

            try:
                self.orders.add(order)
                cart.clear()
                cart.updated_at = now
                self.db.commit()
            except (StaleDataError, IntegrityError):
                self.db.rollback()
                logger.warning(
                    f"Cart of customer {customer_id} changed while placing order, "
                    f"retrying (attempt {attempt}/{self.carts.max_retries})"
                )
                continue
            except Exception as e:
                self.db.rollback()
                logger.error(f"Error placing order for customer {customer_id}: {e}")
                raise

            self.db.refresh(order)
            logger.info(f"Order {order.id} placed by customer {customer_id} for {order.total_amount}")
            return order

        raise ConcurrencyConflictError("Cart is being modified concurrently, please retry")

    def _snapshot_lines(self, cart: Cart) -> Tuple[List[OrderLine], Decimal]:
        """Зафиксировать текущие цены каталога в позициях заказа"""
        lines = []
        unavailable = []
        total_amount = Decimal("0.00")

        for cart_line in cart.lines:
            menu_item = self.catalog.get_menu_item(cart_line.menu_item_id)
            if menu_item is None or not menu_item.is_available:
                unavailable.append(cart_line.menu_item_id)
                continue

            line_total = menu_item.price * cart_line.quantity
            total_amount += line_total
            lines.append(OrderLine(
                menu_item_id=cart_line.menu_item_id,
                name=menu_item.name,
                quantity=cart_line.quantity,
                unit_price=menu_item.price,
                line_total=line_total
            ))

        if unavailable:
            raise ValidationError(
                "Some items in the cart are no longer available",
                errors=[f"Menu item {item_id} is not available" for item_id in unavailable]
            )

        return lines, total_amount

    def _load(self, order_id: str) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def get_order(self, order_id: str, actor: Actor) -> Order:
        """Получает заказ по ID (владелец или администратор)"""
        order = self._load(order_id)
        if order.customer_id != actor.user_id and not actor.is_admin:
            raise ForbiddenError("Access denied")
        return order

    def _change_status(self, order_id: str, change: Callable[[Order], None]) -> Order:
        """Применить change к свежей версии заказа и сохранить.

        Если заказ изменили между чтением и коммитом, версия не совпадёт,
        транзакция откатится и проверки повторятся на новом состоянии.
        """
        for attempt in range(1, self.max_retries + 1):
            order = self._load(order_id)
            change(order)

            try:
                self.db.commit()
            except StaleDataError:
                self.db.rollback()
                logger.warning(
                    f"Order {order_id} changed concurrently, "
                    f"retrying (attempt {attempt}/{self.max_retries})"
                )
                continue
            except Exception as e:
                self.db.rollback()
                logger.error(f"Error updating order {order_id}: {e}")
                raise

            self.db.refresh(order)
            return order

        raise ConcurrencyConflictError("Order is being modified concurrently, please retry")

    def update_status(self, order_id: str, new_status: Union[OrderStatus, str], actor: Actor) -> Order:
        """Обновляет статус заказа (только администратор)"""
        if not actor.is_admin:
            raise ForbiddenError("Admin access required")

        try:
            status = OrderStatus(new_status)
        except ValueError:
            raise ValidationError("Invalid status", errors=[f"Unknown status: {new_status}"])

        previous = []

        def change(order: Order):
            if self.strict_transitions and not can_transition(order.status, status):
                raise InvalidTransitionError(
                    f"Order cannot move from {order.status.value} to {status.value}"
                )
            previous.append(order.status)
            order.status = status
            if status == OrderStatus.DELIVERED:
                order.actual_delivery_time = utcnow()

        order = self._change_status(order_id, change)
        logger.info(f"Order {order_id} status updated {previous[-1].value} -> {status.value} by {actor.user_id}")
        return order

    def cancel_order(self, order_id: str, actor: Actor) -> Order:
        """Отменяет заказ по запросу покупателя"""

        def change(order: Order):
            if order.customer_id != actor.user_id:
                raise ForbiddenError("Access denied")
            if order.is_terminal:
                raise InvalidTransitionError("Order cannot be cancelled in current status")
            order.status = OrderStatus.CANCELLED

        order = self._change_status(order_id, change)
        logger.info(f"Order {order_id} cancelled by customer {actor.user_id}")
        return order

    def list_orders(
            self,
            actor: Actor,
            customer_id: Optional[str] = None,
            restaurant_id: Optional[str] = None,
            status: Optional[OrderStatus] = None,
            page: int = 1,
            page_size: Optional[int] = None
    ) -> Tuple[List[Order], int]:
        """Получает страницу заказов с фильтрами и общее количество"""
        # Покупатель видит только свои заказы
        if not actor.is_admin:
            customer_id = actor.user_id

        if page_size is None:
            page_size = settings.default_page_size
        if page < 1 or page_size < 1:
            raise ValidationError("Page and page size must be positive", errors=["page", "limit"])
        page_size = min(page_size, settings.max_page_size)

        return self.orders.list(
            customer_id=customer_id,
            restaurant_id=restaurant_id,
            status=status,
            skip=(page - 1) * page_size,
            limit=page_size
        )
