import logging
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from ..config import settings
from ..database import utcnow
from ..exceptions import ConcurrencyConflictError, NotFoundError
from ..models.cart import Cart

logger = logging.getLogger(__name__)


class CartStore:
    """Хранилище корзин: одна корзина на покупателя.

    Изменения идут через read-modify-write по последней сохранённой версии
    корзины. Конфликт версий (параллельный запрос того же покупателя)
    откатывает транзакцию и повторяет изменение со свежего чтения.
    """

    def __init__(self, db: Session, max_retries: Optional[int] = None):
        self.db = db
        self.max_retries = settings.cart_max_retries if max_retries is None else max_retries

    def find(self, customer_id: str) -> Optional[Cart]:
        """Найти корзину покупателя вместе с позициями"""
        return (
            self.db.query(Cart)
            .options(selectinload(Cart.lines))
            .filter(Cart.customer_id == customer_id)
            .populate_existing()
            .first()
        )

    def get_or_create(self, customer_id: str) -> Cart:
        """Получить или создать корзину покупателя"""
        cart = self.find(customer_id)
        if cart:
            return cart

        self.db.add(Cart(customer_id=customer_id))
        try:
            self.db.commit()
            logger.info(f"Created cart for customer {customer_id}")
        except IntegrityError:
            # Корзину успел создать параллельный запрос, уникальный индекс не дал создать вторую
            self.db.rollback()
            logger.info(f"Cart for customer {customer_id} was created concurrently, re-reading")

        cart = self.find(customer_id)
        if cart is None:
            raise ConcurrencyConflictError(f"Could not create cart for customer {customer_id}")
        return cart

    def modify(self, customer_id: str, mutate: Callable[[Cart], None], create: bool = True) -> Cart:
        """Применить mutate к актуальной версии корзины и сохранить"""
        for attempt in range(1, self.max_retries + 1):
            cart = self.get_or_create(customer_id) if create else self.find(customer_id)
            if cart is None:
                raise NotFoundError("Cart not found")

            try:
                mutate(cart)
                # Обновление строки корзины увеличивает version даже если менялись только позиции
                cart.updated_at = utcnow()
                self.db.commit()
            except (StaleDataError, IntegrityError):
                self.db.rollback()
                logger.warning(
                    f"Cart of customer {customer_id} changed concurrently, "
                    f"retrying (attempt {attempt}/{self.max_retries})"
                )
                continue
            except Exception:
                self.db.rollback()
                raise

            self.db.refresh(cart)
            return cart

        logger.error(f"Giving up on cart of customer {customer_id} after {self.max_retries} attempts")
        raise ConcurrencyConflictError("Cart is being modified concurrently, please retry")
