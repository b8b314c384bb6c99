import os

# Настройки читаются при импорте пакета, поэтому задаём их до импорта
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["KAFKA_ENABLED"] = "false"

import threading
from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from food_order_service import models  # noqa: F401
from food_order_service.api import api_router
from food_order_service.api.dependencies import get_catalog
from food_order_service.api.errors import register_exception_handlers
from food_order_service.database import Base, build_engine, get_db
from food_order_service.events.producer import EventProducer, get_event_producer
from food_order_service.schemas.order import DeliveryAddress
from food_order_service.security import Actor, Role
from food_order_service.services.cart_service import CartService
from food_order_service.services.catalog_client import MenuItemInfo
from food_order_service.services.order_service import OrderService

API = "/api/v1"

PIZZA_PLACE = "rest-pizza"
SUSHI_BAR = "rest-sushi"


class FakeCatalog:
    """Каталог в памяти с изменяемыми ценами"""

    def __init__(self):
        self.items = {}
        self.lookups = 0
        # Потоки, в которых выполнялись запросы к каталогу
        self.threads = []

    def add(self, item_id, restaurant_id, name, price, is_available=True):
        self.items[item_id] = MenuItemInfo(
            id=item_id,
            restaurant_id=restaurant_id,
            name=name,
            price=Decimal(price),
            is_available=is_available
        )

    def set_price(self, item_id, price):
        item = self.items[item_id]
        self.add(item.id, item.restaurant_id, item.name, price, item.is_available)

    def set_available(self, item_id, is_available):
        item = self.items[item_id]
        self.add(item.id, item.restaurant_id, item.name, str(item.price), is_available)

    def remove(self, item_id):
        del self.items[item_id]

    def get_menu_item(self, menu_item_id):
        self.lookups += 1
        self.threads.append(threading.get_ident())
        return self.items.get(menu_item_id)


class RecordingProducer(EventProducer):
    """Вместо Kafka складывает события в список"""

    def __init__(self):
        super().__init__(enabled=True)
        self.events = []

    async def publish_event(self, topic, event_type, payload, key=None):
        self.events.append({
            "topic": topic,
            "event_type": event_type,
            "payload": payload,
            "key": key,
            "thread": threading.get_ident()
        })
        return True


@pytest.fixture()
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'orders.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def catalog():
    catalog = FakeCatalog()
    catalog.add("margherita", PIZZA_PLACE, "Margherita", "5.00")
    catalog.add("garlic-bread", PIZZA_PLACE, "Garlic bread", "3.50")
    catalog.add("tiramisu", PIZZA_PLACE, "Tiramisu", "4.25")
    catalog.add("calzone", PIZZA_PLACE, "Calzone", "8.00", is_available=False)
    catalog.add("salmon-roll", SUSHI_BAR, "Salmon roll", "7.90")
    return catalog


@pytest.fixture()
def cart_service(db, catalog):
    return CartService(db, catalog)


@pytest.fixture()
def order_service(db, catalog):
    return OrderService(db, catalog)


@pytest.fixture()
def customer():
    return Actor(user_id="cust-001")


@pytest.fixture()
def other_customer():
    return Actor(user_id="cust-002")


@pytest.fixture()
def admin():
    return Actor(user_id="admin-001", role=Role.ADMIN)


@pytest.fixture()
def address():
    return DeliveryAddress(street="12 Baker St", city="Springfield", state="IL", zip_code="62701")


@pytest.fixture()
def producer():
    return RecordingProducer()


@pytest.fixture()
def client(session_factory, catalog, producer):
    app = FastAPI()
    app.include_router(api_router, prefix=API)
    register_exception_handlers(app)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_event_producer] = lambda: producer
    return TestClient(app)


def auth(user_id="cust-001", role="customer"):
    """Заголовки, которые выставляет gateway"""
    return {"X-User-Id": user_id, "X-User-Role": role}
