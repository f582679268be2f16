# app/infrastructure/messaging/rabbitmq_publisher.py

import json
from typing import Optional

import aio_pika

from app.config.settings import settings


class RabbitMQPublisher:
    """Publishes request lifecycle messages to a durable topic exchange. Connects lazily."""

    def __init__(self, url: Optional[str] = None):
        self._url = url or settings.rabbitmq_url
        self._connection = None
        self._channel = None

    async def connect(self):
        self._connection = await aio_pika.connect_robust(self._url)
        self._channel = await self._connection.channel()

    async def publish(
        self,
        exchange_name: str,
        routing_key: str,
        message: dict,
        idempotency_key: str,
    ):
        if not self._channel:
            await self.connect()

        exchange = await self._channel.declare_exchange(
            exchange_name,
            aio_pika.ExchangeType.TOPIC,
            durable=True,
        )

        msg = aio_pika.Message(
            body=json.dumps(message).encode(),
            content_type="application/json",
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            message_id=idempotency_key,
            headers={
                "idempotency_key": idempotency_key,
            },
        )

        await exchange.publish(msg, routing_key=routing_key)

    async def close(self):
        if self._connection is not None:
            await self._connection.close()
        self._connection = None
        self._channel = None
