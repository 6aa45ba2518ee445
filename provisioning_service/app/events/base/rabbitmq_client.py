import asyncio
import logging
from typing import Any, Dict, Optional

import aio_pika
from aio_pika.abc import (
    AbstractChannel,
    AbstractExchange,
    AbstractQueue,
    AbstractRobustConnection,
)
from aio_pika.exceptions import AMQPConnectionError, AMQPError

from ...core.exceptions import BrokerConnectionError, BrokerNotConnectedError
from ..schemas import ORDER_CREATED, ResultType
from . import Delivery, DeliveryCallback, MessageBroker

logger = logging.getLogger(__name__)


class RabbitMQGateway(MessageBroker):
    """
    RabbitMQ connection, topology and channel operations.

    Publish, ack and reject share one channel and are serialized through a
    lock so concurrent deliveries never interleave frames.
    """

    def __init__(
        self,
        url: str,
        exchange_name: str,
        queue_name: str,
        result_queue_name: str,
        prefetch_count: int = 4,
        max_retries: int = 5,
        retry_delay: float = 2.0,
    ):
        self.url = url
        self.exchange_name = exchange_name
        self.queue_name = queue_name
        self.result_queue_name = result_queue_name
        self.prefetch_count = prefetch_count
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.connection: Optional[AbstractRobustConnection] = None
        self.channel: Optional[AbstractChannel] = None
        self.exchange: Optional[AbstractExchange] = None
        self.queue: Optional[AbstractQueue] = None
        self._consumer_tag: Optional[str] = None
        self._connection_lock = asyncio.Lock()
        self._channel_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self.connection is not None and not self.connection.is_closed

    async def start(self, timeout: float = 30.0) -> None:
        """Connect with exponential backoff, then declare the topology.

        Raises:
            BrokerConnectionError: the broker is unreachable after all retries.
        """
        async with self._connection_lock:
            if self.is_connected:
                return

            for attempt in range(self.max_retries):
                try:
                    logger.info(
                        "Attempting RabbitMQ connection",
                        extra={
                            "attempt": attempt + 1,
                            "max_retries": self.max_retries,
                            "operation": "broker_connect",
                        },
                    )
                    self.connection = await aio_pika.connect_robust(
                        self.url, timeout=timeout
                    )
                    break

                except (AMQPConnectionError, OSError, asyncio.TimeoutError) as e:
                    delay = self.retry_delay * (2**attempt)
                    if attempt < self.max_retries - 1:
                        logger.warning(
                            f"RabbitMQ connection attempt {attempt + 1} failed: {e}. "
                            f"Retrying in {delay} seconds..."
                        )
                        await asyncio.sleep(delay)
                    else:
                        logger.error(
                            f"Failed to connect to RabbitMQ after {self.max_retries} attempts"
                        )
                        raise BrokerConnectionError(
                            "Could not connect to RabbitMQ",
                            details={"attempts": self.max_retries, "error": str(e)},
                        ) from e

            try:
                self.channel = await self.connection.channel(publisher_confirms=True)  # type: ignore[union-attr]
                await self.channel.set_qos(prefetch_count=self.prefetch_count)
                await self._declare_topology()
            except Exception:
                logger.error(
                    "Failed to declare RabbitMQ topology, closing connection",
                    exc_info=True,
                    extra={"operation": "declare_topology"},
                )
                await self._reset_connection()
                raise

            logger.info(
                "Connected to RabbitMQ",
                extra={
                    "exchange": self.exchange_name,
                    "queue": self.queue_name,
                    "prefetch_count": self.prefetch_count,
                    "operation": "broker_connected",
                },
            )

    async def _declare_topology(self) -> None:
        self.exchange = await self.channel.declare_exchange(  # type: ignore[union-attr]
            self.exchange_name, aio_pika.ExchangeType.TOPIC, durable=True
        )
        self.queue = await self.channel.declare_queue(  # type: ignore[union-attr]
            self.queue_name, durable=True
        )
        await self.queue.bind(self.exchange, routing_key=ORDER_CREATED)

        await self._declare_result_queue()

    async def _declare_result_queue(self) -> None:
        # A failed declare closes its channel, so use a throw-away one
        try:
            topology_channel = await self.connection.channel()  # type: ignore[union-attr]
            try:
                result_queue = await topology_channel.declare_queue(
                    self.result_queue_name, durable=True
                )
                for result_type in ResultType:
                    await result_queue.bind(
                        self.exchange_name, routing_key=result_type.value
                    )
            finally:
                if not topology_channel.is_closed:
                    await topology_channel.close()
        except AMQPError as e:
            logger.warning(
                "Could not declare result queue, continuing with existing topology",
                extra={
                    "queue": self.result_queue_name,
                    "error": str(e),
                    "operation": "declare_result_queue",
                },
            )

    async def consume(self, callback: DeliveryCallback) -> None:
        if self.queue is None:
            raise BrokerNotConnectedError("RabbitMQ gateway has not been started")
        self._consumer_tag = await self.queue.consume(callback, no_ack=False)
        logger.info(
            "Consuming from RabbitMQ queue",
            extra={
                "queue": self.queue_name,
                "consumer_tag": self._consumer_tag,
                "operation": "consume",
            },
        )

    async def cancel_consumer(self) -> None:
        if self.queue is None or self._consumer_tag is None:
            return
        consumer_tag, self._consumer_tag = self._consumer_tag, None
        try:
            await self.queue.cancel(consumer_tag)
            logger.info(
                "Cancelled RabbitMQ consumer",
                extra={"consumer_tag": consumer_tag, "operation": "cancel_consumer"},
            )
        except AMQPError as e:
            logger.warning(
                "Error cancelling RabbitMQ consumer",
                extra={"error": str(e), "operation": "cancel_consumer"},
            )

    async def publish(
        self,
        body: bytes,
        routing_key: str,
        *,
        message_id: str,
        correlation_id: str,
        headers: Dict[str, Any],
    ) -> None:
        if self.exchange is None or not self.is_connected:
            raise BrokerNotConnectedError("RabbitMQ gateway is not connected")

        message = aio_pika.Message(
            body=body,
            content_type="application/json",
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            message_id=message_id,
            correlation_id=correlation_id,
            headers=headers,
        )
        async with self._channel_lock:
            await self.exchange.publish(message, routing_key=routing_key)

    async def ack(self, delivery: Delivery) -> None:
        async with self._channel_lock:
            await delivery.message.ack()

    async def reject(self, delivery: Delivery, requeue: bool = False) -> None:
        async with self._channel_lock:
            await delivery.message.reject(requeue=requeue)

    async def stop(self) -> None:
        """Close channel and connection"""
        async with self._connection_lock:
            await self._reset_connection()

    async def _reset_connection(self) -> None:
        # Caller holds _connection_lock
        try:
            if self.channel is not None and not self.channel.is_closed:
                await self.channel.close()
            if self.connection is not None and not self.connection.is_closed:
                await self.connection.close()
            logger.info("RabbitMQ connection closed")
        except AMQPError as e:
            logger.warning(
                "Error closing RabbitMQ connection",
                extra={"error": str(e), "operation": "stop_broker"},
            )
        finally:
            self.channel = None
            self.connection = None
            self.exchange = None
            self.queue = None
            self._consumer_tag = None

    async def health_check(self) -> Dict[str, Any]:
        """Report broker connectivity"""
        if not self.is_connected:
            return {
                "status": "unhealthy",
                "message": "RabbitMQ connection is closed",
                "component": "broker",
            }
        return {
            "status": "healthy",
            "message": "RabbitMQ connection open",
            "component": "broker",
            "exchange": self.exchange_name,
            "queue": self.queue_name,
            "consuming": self._consumer_tag is not None,
        }
