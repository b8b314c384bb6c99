import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..models.order import Order, OrderStatus

logger = logging.getLogger(__name__)


class OrderStore:
    """Хранилище заказов: создание, чтение по id и выборки с пагинацией"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, order: Order) -> None:
        """Добавить заказ в текущую транзакцию (коммит делает вызывающий код)"""
        self.db.add(order)

    def get(self, order_id: str) -> Optional[Order]:
        """Получает заказ по ID (всегда свежее чтение из БД)"""
        return (
            self.db.query(Order)
            .options(selectinload(Order.lines))
            .filter(Order.id == order_id)
            .populate_existing()
            .first()
        )

    def _filtered(
            self,
            query,
            customer_id: Optional[str] = None,
            restaurant_id: Optional[str] = None,
            status: Optional[OrderStatus] = None
    ):
        if customer_id:
            query = query.filter(Order.customer_id == customer_id)
        if restaurant_id:
            query = query.filter(Order.restaurant_id == restaurant_id)
        if status:
            query = query.filter(Order.status == status)
        return query

    def list(
            self,
            customer_id: Optional[str] = None,
            restaurant_id: Optional[str] = None,
            status: Optional[OrderStatus] = None,
            skip: int = 0,
            limit: int = 10
    ) -> Tuple[List[Order], int]:
        """Страница заказов (новые первыми) и общее количество по фильтрам"""
        query = self._filtered(
            self.db.query(Order).options(selectinload(Order.lines)),
            customer_id, restaurant_id, status
        )
        orders = query.order_by(Order.created_at.desc()).offset(skip).limit(limit).all()

        total = self._filtered(
            self.db.query(func.count(Order.id)),
            customer_id, restaurant_id, status
        ).scalar() or 0

        return orders, total
