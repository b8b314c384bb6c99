from sqlalchemy import Column, String, Integer, DateTime, Enum, Numeric, Text, Index
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from ..database import Base, utcnow


class OrderStatus(str, PyEnum):
    PENDING = "pending"  # Ожидает подтверждения ресторана
    CONFIRMED = "confirmed"  # Подтвержден
    PREPARING = "preparing"  # Готовится
    READY = "ready"  # Готов к выдаче курьеру
    DELIVERED = "delivered"  # Доставлен
    CANCELLED = "cancelled"  # Отменен


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Допустимые переходы при строгой политике смены статуса
TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Можно ли перевести заказ из current в target по строгой политике"""
    return target in TRANSITIONS.get(current, set())


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_customer_status_created", "customer_id", "status", "created_at"),
        Index("ix_orders_restaurant_status_created", "restaurant_id", "status", "created_at"),
    )

    id = Column(String, primary_key=True, index=True)  # UUID
    customer_id = Column(String, nullable=False)
    restaurant_id = Column(String, nullable=False)

    # Статус заказа
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False)

    # Сумма фиксируется при создании и больше не пересчитывается
    total_amount = Column(Numeric(10, 2), nullable=False)

    # Адрес доставки
    delivery_street = Column(String(255), nullable=False)
    delivery_city = Column(String(100), nullable=False)
    delivery_state = Column(String(100), nullable=False)
    delivery_zip_code = Column(String(20), nullable=False)
    delivery_instructions = Column(Text, nullable=True)

    # Временные метки
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    estimated_delivery_time = Column(DateTime, nullable=False)
    actual_delivery_time = Column(DateTime, nullable=True)

    # Смена статуса проверяет, что заказ не изменился с момента чтения
    version = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    # Связи
    lines = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.id"
    )

    @property
    def delivery_address(self) -> dict:
        return {
            "street": self.delivery_street,
            "city": self.delivery_city,
            "state": self.delivery_state,
            "zip_code": self.delivery_zip_code,
        }

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
