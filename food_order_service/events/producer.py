import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaConnectionError, KafkaTimeoutError

from ..config import settings
from ..models.cart import Cart
from ..models.order import Order

logger = logging.getLogger(__name__)

PRODUCER_SERVICE = "food-order-service"


def order_payload(order: Order) -> Dict[str, Any]:
    """Данные заказа для событий"""
    return {
        "order_id": order.id,
        "customer_id": order.customer_id,
        "restaurant_id": order.restaurant_id,
        "status": order.status.value,
        "total_amount": str(order.total_amount),
        "items": [
            {
                "menu_item_id": line.menu_item_id,
                "name": line.name,
                "quantity": line.quantity,
                "unit_price": str(line.unit_price)
            }
            for line in order.lines
        ],
        "created_at": order.created_at.isoformat(),
        "estimated_delivery_time": order.estimated_delivery_time.isoformat(),
        "actual_delivery_time": order.actual_delivery_time.isoformat() if order.actual_delivery_time else None
    }


class EventProducer:
    """Producer для отправки доменных событий в Kafka.

    Публикация идёт после коммита и не влияет на ответ клиенту: ошибки
    только логируются.
    """

    def __init__(self, enabled: Optional[bool] = None):
        self.producer: Optional[AIOKafkaProducer] = None
        self.bootstrap_servers = settings.kafka_bootstrap_servers
        self.enabled = settings.kafka_enabled if enabled is None else enabled

    async def start(self):
        """Запуск Kafka продюсера"""
        if not self.enabled:
            logger.info("Kafka publishing disabled, producer not started")
            return

        try:
            self.producer = AIOKafkaProducer(
                bootstrap_servers=self.bootstrap_servers,
                value_serializer=lambda v: json.dumps(v).encode('utf-8'),
                key_serializer=lambda k: k.encode('utf-8') if k else None,
                retry_backoff_ms=1000,
                request_timeout_ms=30000,
                acks='all',
                enable_idempotence=True
            )
            await self.producer.start()
            logger.info("✅ Kafka producer started successfully")
        except Exception as e:
            self.producer = None
            logger.error(f"❌ Failed to start Kafka producer: {e}")
            raise

    async def stop(self):
        """Остановка Kafka продюсера"""
        if self.producer:
            try:
                await self.producer.stop()
                logger.info("✅ Kafka producer stopped")
            except Exception as e:
                logger.error(f"❌ Error stopping Kafka producer: {e}")
            finally:
                self.producer = None

    async def publish_event(
            self,
            topic: str,
            event_type: str,
            payload: Dict[str, Any],
            key: Optional[str] = None
    ) -> bool:
        """
        Публикация события в Kafka

        Args:
            topic: Название топика
            event_type: Тип события
            payload: Данные события
            key: Ключ для партиционирования (опционально)

        Returns:
            bool: True если успешно отправлено
        """
        if not self.enabled:
            return False

        if not self.producer:
            logger.error("Kafka producer not started")
            return False

        try:
            event = {
                "event_id": str(uuid.uuid4()),
                "event_type": event_type,
                "event_timestamp": datetime.now(timezone.utc).isoformat(),
                "producer_service": PRODUCER_SERVICE,
                "payload": payload
            }

            record_metadata = await self.producer.send_and_wait(topic, value=event, key=key)

            logger.info(
                f"📤 Event published: {event_type} to {topic} "
                f"(partition: {record_metadata.partition}, offset: {record_metadata.offset})"
            )
            return True

        except KafkaTimeoutError:
            logger.error(f"❌ Timeout publishing event {event_type} to {topic}")
            return False
        except KafkaConnectionError:
            logger.error(f"❌ Connection error publishing event {event_type} to {topic}")
            return False
        except Exception as e:
            logger.error(f"❌ Error publishing event {event_type} to {topic}: {e}")
            return False

    # Методы для конкретных событий
    async def cart_updated(self, cart: Cart, action: str) -> bool:
        """Событие изменения корзины"""
        return await self.publish_event(
            topic="cart.updated",
            event_type=f"cart_{action}",
            payload={
                "cart_id": cart.id,
                "customer_id": cart.customer_id,
                "restaurant_id": cart.restaurant_id,
                "items": [
                    {"line_id": line.id, "menu_item_id": line.menu_item_id, "quantity": line.quantity}
                    for line in cart.lines
                ],
                "action": action
            },
            key=cart.customer_id
        )

    async def order_placed(self, order: Order) -> bool:
        """Событие создания заказа"""
        return await self.publish_event(
            topic="order.placed",
            event_type="order_placed",
            payload=order_payload(order),
            key=order.id
        )

    async def order_status_changed(self, order: Order) -> bool:
        """Событие смены статуса заказа"""
        return await self.publish_event(
            topic="order.status_changed",
            event_type="order_status_changed",
            payload=order_payload(order),
            key=order.id
        )

    async def order_cancelled(self, order: Order) -> bool:
        """Событие отмены заказа"""
        return await self.publish_event(
            topic="order.cancelled",
            event_type="order_cancelled",
            payload=order_payload(order),
            key=order.id
        )


# Глобальный экземпляр продюсера
event_producer = EventProducer()


async def get_event_producer() -> EventProducer:
    """Dependency для получения event producer"""
    return event_producer
