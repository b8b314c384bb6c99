from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ...events.producer import EventProducer, get_event_producer
from ...schemas.cart import CartSummary, CartResponse
from ...schemas.cart_line import CartItemCreate, CartItemUpdate
from ...security import Actor
from ...services.cart_service import CartService
from ..dependencies import get_cart_service, get_current_actor

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartSummary)
async def get_cart(
        actor: Actor = Depends(get_current_actor),
        cart_service: CartService = Depends(get_cart_service)
):
    """Получение корзины (создаётся при первом обращении)"""
    cart = await run_in_threadpool(cart_service.get_or_create_cart, actor.user_id)
    return await run_in_threadpool(cart_service.summarize, cart)


@router.post("/add", response_model=CartResponse)
async def add_item_to_cart(
        item: CartItemCreate,
        actor: Actor = Depends(get_current_actor),
        cart_service: CartService = Depends(get_cart_service),
        producer: EventProducer = Depends(get_event_producer)
):
    """Добавление блюда в корзину"""
    cart = await run_in_threadpool(cart_service.add_item, actor.user_id, item.menu_item_id, item.quantity)
    summary = await run_in_threadpool(cart_service.summarize, cart)
    await producer.cart_updated(cart, "item_added")
    return CartResponse(message="Item added to cart successfully", cart=summary)


@router.put("/update/{line_id}", response_model=CartResponse)
async def update_cart_item(
        line_id: int,
        item: CartItemUpdate,
        actor: Actor = Depends(get_current_actor),
        cart_service: CartService = Depends(get_cart_service),
        producer: EventProducer = Depends(get_event_producer)
):
    """Обновление количества в позиции корзины"""
    cart = await run_in_threadpool(cart_service.update_item_quantity, actor.user_id, line_id, item.quantity)
    summary = await run_in_threadpool(cart_service.summarize, cart)
    await producer.cart_updated(cart, "item_updated")
    return CartResponse(message="Cart updated successfully", cart=summary)


@router.delete("/remove/{line_id}", response_model=CartResponse)
async def remove_item_from_cart(
        line_id: int,
        actor: Actor = Depends(get_current_actor),
        cart_service: CartService = Depends(get_cart_service),
        producer: EventProducer = Depends(get_event_producer)
):
    """Удаление позиции из корзины"""
    cart = await run_in_threadpool(cart_service.remove_item, actor.user_id, line_id)
    summary = await run_in_threadpool(cart_service.summarize, cart)
    await producer.cart_updated(cart, "item_removed")
    return CartResponse(message="Item removed from cart successfully", cart=summary)


@router.delete("/clear", response_model=CartResponse)
async def clear_cart(
        actor: Actor = Depends(get_current_actor),
        cart_service: CartService = Depends(get_cart_service),
        producer: EventProducer = Depends(get_event_producer)
):
    """Очистка корзины"""
    cart = await run_in_threadpool(cart_service.clear_cart, actor.user_id)
    summary = await run_in_threadpool(cart_service.summarize, cart)
    await producer.cart_updated(cart, "cleared")
    return CartResponse(message="Cart cleared successfully", cart=summary)
