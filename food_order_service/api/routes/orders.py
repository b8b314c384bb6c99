from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from ...config import settings
from ...events.producer import EventProducer, get_event_producer
from ...models.order import Order, OrderStatus
from ...schemas.order import (
    OrderCreate,
    OrderEnvelope,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from ...security import Actor
from ...services.order_service import OrderService
from ..dependencies import get_admin_actor, get_current_actor, get_order_service


router = APIRouter(prefix="/orders", tags=["orders"])


def _page(orders: List[Order], total: int, page: int, limit: int) -> OrderListResponse:
    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders],
        total_pages=(total + limit - 1) // limit,
        current_page=page,
        total=total
    )


@router.post("", response_model=OrderEnvelope, status_code=201)
async def place_order(
        body: OrderCreate,
        actor: Actor = Depends(get_current_actor),
        order_service: OrderService = Depends(get_order_service),
        producer: EventProducer = Depends(get_event_producer)
):
    """Оформление заказа из корзины"""
    order = await run_in_threadpool(
        order_service.place_order, actor.user_id, body.delivery_address, body.delivery_instructions
    )
    response = await run_in_threadpool(OrderResponse.model_validate, order)
    await producer.order_placed(order)
    return OrderEnvelope(message="Order placed successfully", order=response)


@router.get("", response_model=OrderListResponse)
async def get_my_orders(
        status: Optional[OrderStatus] = Query(None, description="Фильтр по статусу"),
        page: int = Query(1, ge=1, description="Номер страницы"),
        limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
        actor: Actor = Depends(get_current_actor),
        order_service: OrderService = Depends(get_order_service)
):
    """Заказы текущего покупателя, новые первыми"""
    orders, total = await run_in_threadpool(
        order_service.list_orders, actor, customer_id=actor.user_id, status=status, page=page, page_size=limit
    )
    return await run_in_threadpool(_page, orders, total, page, limit)


@router.get("/admin/all", response_model=OrderListResponse)
async def get_all_orders(
        status: Optional[OrderStatus] = Query(None, description="Фильтр по статусу"),
        restaurant: Optional[str] = Query(None, description="Фильтр по ресторану"),
        customer: Optional[str] = Query(None, description="Фильтр по покупателю"),
        page: int = Query(1, ge=1, description="Номер страницы"),
        limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
        actor: Actor = Depends(get_admin_actor),
        order_service: OrderService = Depends(get_order_service)
):
    """Все заказы (только администратор)"""
    orders, total = await run_in_threadpool(
        order_service.list_orders,
        actor,
        customer_id=customer,
        restaurant_id=restaurant,
        status=status,
        page=page,
        page_size=limit
    )
    return await run_in_threadpool(_page, orders, total, page, limit)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
        order_id: str,
        actor: Actor = Depends(get_current_actor),
        order_service: OrderService = Depends(get_order_service)
):
    """Получить заказ по ID"""
    order = await run_in_threadpool(order_service.get_order, order_id, actor)
    return await run_in_threadpool(OrderResponse.model_validate, order)


@router.put("/{order_id}/status", response_model=OrderEnvelope)
async def update_order_status(
        order_id: str,
        body: OrderStatusUpdate,
        actor: Actor = Depends(get_admin_actor),
        order_service: OrderService = Depends(get_order_service),
        producer: EventProducer = Depends(get_event_producer)
):
    """Обновить статус заказа"""
    order = await run_in_threadpool(order_service.update_status, order_id, body.status, actor)
    response = await run_in_threadpool(OrderResponse.model_validate, order)
    await producer.order_status_changed(order)
    return OrderEnvelope(message="Order status updated successfully", order=response)


@router.put("/{order_id}/cancel", response_model=OrderEnvelope)
async def cancel_order(
        order_id: str,
        actor: Actor = Depends(get_current_actor),
        order_service: OrderService = Depends(get_order_service),
        producer: EventProducer = Depends(get_event_producer)
):
    """Отменить заказ"""
    order = await run_in_threadpool(order_service.cancel_order, order_id, actor)
    response = await run_in_threadpool(OrderResponse.model_validate, order)
    await producer.order_cancelled(order)
    return OrderEnvelope(message="Order cancelled successfully", order=response)
