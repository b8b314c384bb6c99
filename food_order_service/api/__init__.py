from fastapi import APIRouter
from .routes import cart_router, orders_router

# Создаем основной API router
api_router = APIRouter()

# Подключаем роуты
api_router.include_router(cart_router)
api_router.include_router(orders_router)

__all__ = ["api_router"]
