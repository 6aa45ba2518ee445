"""
Provisioning Service messaging base classes and interfaces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional


@dataclass(frozen=True)
class Delivery:
    """One message handed to the worker by the broker"""

    body: bytes
    delivery_tag: Optional[int] = None
    routing_key: Optional[str] = None
    redelivered: bool = False
    message: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def from_message(cls, message: Any) -> "Delivery":
        return cls(
            body=message.body,
            delivery_tag=message.delivery_tag,
            routing_key=message.routing_key,
            redelivered=bool(message.redelivered),
            message=message,
        )


DeliveryCallback = Callable[[Any], Awaitable[None]]


class MessageBroker(ABC):
    """Broker operations the provisioning pipeline relies on"""

    @abstractmethod
    async def consume(self, callback: DeliveryCallback) -> None:
        """Start delivering input queue messages to ``callback``"""
        pass

    @abstractmethod
    async def cancel_consumer(self) -> None:
        """Stop receiving new deliveries"""
        pass

    @abstractmethod
    async def publish(
        self,
        body: bytes,
        routing_key: str,
        *,
        message_id: str,
        correlation_id: str,
        headers: Dict[str, Any],
    ) -> None:
        """Publish a persistent JSON message to the exchange"""
        pass

    @abstractmethod
    async def ack(self, delivery: Delivery) -> None:
        """Acknowledge a delivery"""
        pass

    @abstractmethod
    async def reject(self, delivery: Delivery, requeue: bool = False) -> None:
        """Reject a delivery"""
        pass
