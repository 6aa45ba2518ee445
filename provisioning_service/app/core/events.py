"""
Provisioning Service Event Management
Wires the RabbitMQ gateway, handler registry, result producer and consumer.
"""

import logging
from typing import Any, Dict, Optional

from ..events.base.rabbitmq_client import RabbitMQGateway
from ..events.consumers import OrderCreatedConsumer
from ..events.producers import ProvisioningResultProducer
from ..handlers.registry import build_handler_registry
from .settings import get_settings

logger = logging.getLogger(__name__)

# Global instances
_gateway: Optional[RabbitMQGateway] = None
_consumer: Optional[OrderCreatedConsumer] = None


async def init_events() -> None:
    """Connect to the broker and start consuming.

    Raises:
        BrokerConnectionError: propagated so startup fails instead of serving
            in a half-initialized state.
    """
    global _gateway, _consumer

    settings = get_settings()

    gateway = RabbitMQGateway(
        url=settings.RABBIT_URL,
        exchange_name=settings.RABBIT_EXCHANGE,
        queue_name=settings.RABBIT_QUEUE,
        result_queue_name=settings.RABBIT_RESULT_QUEUE,
        prefetch_count=settings.RABBIT_PREFETCH_COUNT,
        max_retries=settings.BROKER_MAX_RETRIES,
        retry_delay=settings.BROKER_RETRY_DELAY,
    )
    await gateway.start(timeout=settings.BROKER_CONNECT_TIMEOUT)

    consumer = OrderCreatedConsumer(
        broker=gateway,
        registry=build_handler_registry(settings.PROVISIONING_STEP_DELAY_SCALE),
        result_producer=ProvisioningResultProducer(
            gateway, source_service=settings.EVENT_SOURCE
        ),
        max_in_flight=settings.RABBIT_PREFETCH_COUNT,
        shutdown_timeout=settings.SHUTDOWN_TIMEOUT,
    )

    try:
        await consumer.start()
    except Exception:
        await gateway.stop()
        raise

    _gateway = gateway
    _consumer = consumer
    logger.info("Event consumption infrastructure initialized successfully")


async def close_events() -> None:
    """Drain in-flight deliveries, then close the broker connection"""
    global _gateway, _consumer

    try:
        if _consumer:
            await _consumer.stop()
    finally:
        if _gateway:
            await _gateway.stop()
        _gateway = None
        _consumer = None
    logger.info("Event consumption infrastructure closed")


def get_consumer() -> Optional[OrderCreatedConsumer]:
    """Get the running order created consumer"""
    return _consumer


async def health_check_events() -> Dict[str, Any]:
    """Broker and consumer status for the health endpoint"""
    if _gateway is None:
        return {
            "status": "unhealthy",
            "message": "Broker gateway not initialized",
            "component": "broker",
        }
    result = await _gateway.health_check()
    if _consumer is not None:
        result["in_flight_deliveries"] = _consumer.in_flight
    return result
