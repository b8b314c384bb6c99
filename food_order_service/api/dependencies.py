from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import ForbiddenError
from ..security import Actor, Role
from ..services.cart_service import CartService
from ..services.catalog_client import CatalogClient, CatalogLookup
from ..services.order_service import OrderService


def get_current_actor(
        x_user_id: Optional[str] = Header(None),
        x_user_role: Role = Header(Role.CUSTOMER)
) -> Actor:
    """Пользователь из заголовков, которые выставляет API gateway после аутентификации"""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return Actor(user_id=x_user_id, role=x_user_role)


def get_admin_actor(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Только для администраторов"""
    if not actor.is_admin:
        raise ForbiddenError("Admin access required")
    return actor


def get_catalog() -> CatalogLookup:
    """Dependency для получения клиента каталога"""
    return CatalogClient()


def get_cart_service(
        db: Session = Depends(get_db),
        catalog: CatalogLookup = Depends(get_catalog)
) -> CartService:
    """Dependency для получения CartService"""
    return CartService(db, catalog)


def get_order_service(
        db: Session = Depends(get_db),
        catalog: CatalogLookup = Depends(get_catalog)
) -> OrderService:
    """Dependency для получения OrderService"""
    return OrderService(db, catalog)
