from pydantic import Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from .base import CamelModel
from .order_line import OrderLineResponse
from ..models.order import OrderStatus


class DeliveryAddress(CamelModel):
    # Пустые значения проверяет OrderService, чтобы вернуть список всех недостающих полей
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


class OrderCreate(CamelModel):
    delivery_address: DeliveryAddress = Field(default_factory=DeliveryAddress)
    delivery_instructions: Optional[str] = None


class OrderStatusUpdate(CamelModel):
    status: OrderStatus

    class Config:
        # Меняется только статус, лишние поля отклоняются
        extra = "forbid"


class OrderResponse(CamelModel):
    id: str
    customer_id: str
    restaurant_id: str
    status: OrderStatus
    total_amount: Decimal
    delivery_address: DeliveryAddress
    delivery_instructions: Optional[str] = None

    created_at: datetime
    updated_at: Optional[datetime] = None
    estimated_delivery_time: datetime
    actual_delivery_time: Optional[datetime] = None

    lines: List[OrderLineResponse] = []


class OrderEnvelope(CamelModel):
    message: str
    order: OrderResponse


class OrderListResponse(CamelModel):
    orders: List[OrderResponse]
    total_pages: int
    current_page: int
    total: int
