import httpx
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any, Protocol

from ..config import settings
from ..exceptions import CatalogUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MenuItemInfo:
    """Данные блюда, которые нужны корзине и заказу"""

    id: str
    restaurant_id: str
    name: str
    price: Decimal
    is_available: bool = True


class CatalogLookup(Protocol):
    """Интерфейс чтения каталога ресторанов"""

    def get_menu_item(self, menu_item_id: str) -> Optional[MenuItemInfo]:
        ...


def parse_menu_item(data: Dict[str, Any]) -> MenuItemInfo:
    """Разбор ответа каталога (поддерживает и id, и _id)"""
    restaurant = data.get("restaurantId", data.get("restaurant"))
    if isinstance(restaurant, dict):
        restaurant = restaurant.get("id", restaurant.get("_id"))

    try:
        price = Decimal(str(data["price"]))
    except (KeyError, InvalidOperation) as e:
        raise CatalogUnavailableError(f"Malformed catalog response: bad price ({e})")

    if restaurant is None:
        raise CatalogUnavailableError("Malformed catalog response: missing restaurant")

    return MenuItemInfo(
        id=str(data.get("id", data.get("_id"))),
        restaurant_id=str(restaurant),
        name=data.get("name", ""),
        price=price,
        is_available=bool(data.get("isAvailable", data.get("is_available", True)))
    )


class CatalogClient:
    """Клиент для взаимодействия с каталогом ресторанов"""

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.Client] = None):
        self.base_url = (base_url or settings.catalog_service_url).rstrip("/")
        self.timeout = settings.catalog_timeout
        self._client = client

    def _get(self, path: str) -> httpx.Response:
        if self._client is not None:
            return self._client.get(f"{self.base_url}{path}")
        with httpx.Client(timeout=self.timeout) as client:
            return client.get(f"{self.base_url}{path}")

    def get_menu_item(self, menu_item_id: str) -> Optional[MenuItemInfo]:
        """Получить информацию о блюде"""
        try:
            response = self._get(f"/menu-items/{menu_item_id}")
        except httpx.TimeoutException:
            logger.error(f"Timeout when fetching menu item {menu_item_id}")
            raise CatalogUnavailableError("Catalog service timed out")
        except httpx.HTTPError as e:
            logger.error(f"Error fetching menu item {menu_item_id}: {e}")
            raise CatalogUnavailableError("Catalog service is unreachable")

        if response.status_code == 200:
            return parse_menu_item(response.json())
        elif response.status_code == 404:
            logger.warning(f"Menu item {menu_item_id} not found")
            return None
        else:
            logger.error(f"Error fetching menu item {menu_item_id}: {response.status_code}")
            raise CatalogUnavailableError(f"Catalog service responded with {response.status_code}")
