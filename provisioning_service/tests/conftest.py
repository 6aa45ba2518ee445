"""
Pytest configuration and fixtures for Provisioning Service tests.
"""

import json
import os
from typing import Any, Callable, Dict, Union
from unittest.mock import AsyncMock, Mock

import pytest

# Set up test environment before importing settings
os.environ["ENVIRONMENT"] = "test"
os.environ["PROVISIONING_STEP_DELAY_SCALE"] = "0"
os.environ["BROKER_MAX_RETRIES"] = "3"
os.environ["BROKER_RETRY_DELAY"] = "0"

from provisioning_service.app.events.base import Delivery, MessageBroker
from provisioning_service.app.events.consumers import OrderCreatedConsumer
from provisioning_service.app.events.producers import ProvisioningResultProducer
from provisioning_service.app.handlers.registry import (
    HandlerRegistry,
    build_handler_registry,
)


@pytest.fixture
def make_message() -> Callable[..., Mock]:
    """Build a stand-in for an aio-pika incoming message."""

    def _make(body: Union[Dict[str, Any], bytes], delivery_tag: int = 1) -> Mock:
        message = Mock()
        message.body = body if isinstance(body, bytes) else json.dumps(body).encode()
        message.delivery_tag = delivery_tag
        message.routing_key = "order.created"
        message.redelivered = False
        message.ack = AsyncMock()
        message.reject = AsyncMock()
        return message

    return _make


@pytest.fixture
def make_delivery(make_message) -> Callable[..., Delivery]:
    def _make(body: Union[Dict[str, Any], bytes], delivery_tag: int = 1) -> Delivery:
        return Delivery.from_message(make_message(body, delivery_tag))

    return _make


@pytest.fixture
def mock_broker() -> AsyncMock:
    """Mock broker gateway recording publish/ack/reject calls."""
    return AsyncMock(spec=MessageBroker)


@pytest.fixture
def registry() -> HandlerRegistry:
    return build_handler_registry(step_delay_scale=0)


@pytest.fixture
def result_producer(mock_broker) -> ProvisioningResultProducer:
    return ProvisioningResultProducer(mock_broker, source_service="test-provisioning")


@pytest.fixture
def consumer(mock_broker, registry, result_producer) -> OrderCreatedConsumer:
    return OrderCreatedConsumer(
        broker=mock_broker,
        registry=registry,
        result_producer=result_producer,
        max_in_flight=2,
        shutdown_timeout=1.0,
    )


@pytest.fixture
def sample_order_payload() -> Dict[str, Any]:
    """Nested order.created payload as published by the order service."""
    return {
        "message_id": "m1",
        "occurred_at": "2024-05-01T10:00:00Z",
        "order": {
            "id": "o1",
            "product_type": "router",
            "amount": 49.99,
            "customer_id": "c-100",
        },
    }


@pytest.fixture
def published_body(mock_broker) -> Callable[[], Dict[str, Any]]:
    """Decode the JSON body of the single message published on ``mock_broker``."""

    def _body() -> Dict[str, Any]:
        mock_broker.publish.assert_awaited_once()
        return json.loads(mock_broker.publish.await_args.args[0])

    return _body
