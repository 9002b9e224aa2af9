import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Set
from aiokafka import AIOKafkaProducer

from ..config import settings
from ..schemas.notice import NoticeKind

logger = logging.getLogger(__name__)


class EventPublisher:
    """Kafka клиент для отправки событий витрины"""

    def __init__(
            self,
            bootstrap_servers: Optional[str] = None,
            enabled: Optional[bool] = None,
            topic_prefix: Optional[str] = None
    ):
        self.producer: Optional[AIOKafkaProducer] = None
        self.bootstrap_servers = bootstrap_servers or settings.kafka_bootstrap_servers
        self.enabled = settings.kafka_enabled if enabled is None else enabled
        self.topic_prefix = settings.events_topic_prefix if topic_prefix is None else topic_prefix

    async def start(self):
        """Запуск Kafka продюсера"""
        if not self.enabled:
            logger.info("Kafka publishing disabled, events will be dropped")
            return

        try:
            self.producer = AIOKafkaProducer(
                bootstrap_servers=self.bootstrap_servers,
                client_id=settings.kafka_client_id,
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

    @staticmethod
    def build_event(event_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "event_id": str(uuid.uuid4()),
            "event_type": event_type,
            "event_timestamp": datetime.now(timezone.utc).isoformat(),
            "producer_service": "teddy-storefront",
            "payload": payload
        }

    async def publish_event(
            self,
            topic: str,
            event_type: str,
            payload: Dict[str, Any],
            key: Optional[str] = None
    ) -> bool:
        """Публикация события в Kafka; ошибки логируются, но не пробрасываются"""
        if not self.producer:
            logger.debug(f"Kafka producer not started, dropping {event_type}")
            return False

        full_topic = f"{self.topic_prefix}{topic}"
        event = self.build_event(event_type, payload)

        try:
            record_metadata = await self.producer.send_and_wait(full_topic, value=event, key=key)

            logger.info(
                f"✅ Event published: {event_type} to {full_topic} "
                f"(partition: {record_metadata.partition}, offset: {record_metadata.offset})"
            )
            return True

        except Exception as e:
            logger.error(f"❌ Error publishing event {event_type} to {full_topic}: {e}")
            return False


class KafkaNotifier:
    """Отправляет уведомления пользователю в топик storefront.notice (fire-and-forget)"""

    topic = "storefront.notice"

    def __init__(self, publisher: EventPublisher, owner_getter=None):
        self.publisher = publisher
        self.owner_getter = owner_getter
        self._pending: Set[asyncio.Task] = set()

    def notify(self, kind: NoticeKind, message: str) -> None:
        if not self.publisher.producer:
            return

        owner = self.owner_getter() if self.owner_getter else None
        payload = {"owner": owner, "kind": kind.value, "message": message}

        task = asyncio.get_running_loop().create_task(
            self.publisher.publish_event(self.topic, "notice", payload, key=owner)
        )
        # Держим ссылку, пока задача не завершится
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
