"""
Provisioning service consumer for ``order.created`` deliveries.

Every delivery goes through the same pipeline:

    Received -> Decoded -> Resolved -> Dispatched -> ResultBuilt -> Acknowledged

A delivery that cannot be decoded, or whose dispatch or result publish
raises, ends in Rejected (no requeue) instead. A handler reporting failure
is a business outcome: a ``failed`` result is published and the delivery is
still acknowledged.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Set

from ..core.exceptions import OrderEventDecodeError
from ..handlers.registry import HandlerRegistry
from ..models.product_type import ProductType, resolve_product_type
from .base import Delivery, MessageBroker
from .producers import ProvisioningResultProducer
from .schemas import OrderEvent, ResultEvent, build_result_event, decode_order_event

logger = logging.getLogger(__name__)


class DeliveryState(str, Enum):
    RECEIVED = "received"
    DECODED = "decoded"
    RESOLVED = "resolved"
    DISPATCHED = "dispatched"
    RESULT_BUILT = "result_built"
    ACKNOWLEDGED = "acknowledged"
    REJECTED = "rejected"


@dataclass
class DeliveryContext:
    """Per-delivery pipeline state, created fresh for every delivery"""

    delivery: Delivery
    state: DeliveryState = DeliveryState.RECEIVED
    order_event: Optional[OrderEvent] = None
    product_type: Optional[ProductType] = None
    success: bool = False
    result: Optional[ResultEvent] = None

    def advance(self, state: DeliveryState) -> None:
        self.state = state
        logger.debug(
            f"Delivery {self.delivery.delivery_tag} -> {state.value}",
            extra={**self.log_context(), "state": state.value},
        )

    def log_context(self) -> Dict[str, Any]:
        context: Dict[str, Any] = {"delivery_tag": self.delivery.delivery_tag}
        if self.order_event is not None:
            context.update(self.order_event.log_context())
        return context


class OrderCreatedConsumer:
    """Consumes order created events and dispatches them to provisioning handlers"""

    def __init__(
        self,
        broker: MessageBroker,
        registry: HandlerRegistry,
        result_producer: ProvisioningResultProducer,
        max_in_flight: int = 4,
        shutdown_timeout: float = 30.0,
    ):
        self.broker = broker
        self.registry = registry
        self.result_producer = result_producer
        self.shutdown_timeout = shutdown_timeout
        self.running = False
        self._semaphore = asyncio.Semaphore(max_in_flight)
        self._in_flight: Set["asyncio.Task[Any]"] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def start(self) -> None:
        """Start consuming deliveries from the input queue"""
        self.running = True
        await self.broker.consume(self.on_message)
        logger.info("Started consuming order created events")

    async def on_message(self, message: Any) -> None:
        """Broker callback: schedule the pipeline for one delivery"""
        if not self.running:
            # Never acked, so the broker redelivers it after we disconnect
            return

        delivery = Delivery.from_message(message)
        task = asyncio.create_task(self._process(delivery))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _process(self, delivery: Delivery) -> None:
        async with self._semaphore:
            try:
                await self.handle_delivery(delivery)
            except Exception as e:
                logger.error(
                    f"Error settling delivery {delivery.delivery_tag}: {e}",
                    exc_info=True,
                    extra={"delivery_tag": delivery.delivery_tag},
                )

    async def handle_delivery(self, delivery: Delivery) -> DeliveryContext:
        """Run one delivery through the pipeline and settle it with the broker"""
        started = time.time()
        ctx = DeliveryContext(delivery=delivery)
        logger.info(
            f"Received delivery {delivery.delivery_tag}",
            extra={
                "delivery_tag": delivery.delivery_tag,
                "redelivered": delivery.redelivered,
                "body_size": len(delivery.body),
            },
        )

        try:
            ctx.order_event = decode_order_event(delivery.body)
        except OrderEventDecodeError as e:
            logger.warning(
                f"Rejecting undecodable delivery {delivery.delivery_tag}: {e}",
                extra={"delivery_tag": delivery.delivery_tag, **e.details},
            )
            await self._reject(ctx)
            return ctx
        ctx.advance(DeliveryState.DECODED)

        try:
            ctx.product_type = resolve_product_type(ctx.order_event.order.product_type)
            ctx.advance(DeliveryState.RESOLVED)

            logger.info(
                f"Processing order {ctx.order_event.order.id} "
                f"for product type: {ctx.product_type.value}",
                extra=ctx.log_context(),
            )
            ctx.success = await self._dispatch(ctx)
            ctx.advance(DeliveryState.DISPATCHED)

            ctx.result = build_result_event(ctx.order_event, ctx.success)
            ctx.advance(DeliveryState.RESULT_BUILT)

            await self.result_producer.publish_result(ctx.result)
        except Exception as e:
            logger.error(
                f"Error processing delivery {delivery.delivery_tag}: {e}",
                exc_info=True,
                extra={**ctx.log_context(), "state": ctx.state.value},
            )
            await self._reject(ctx)
            return ctx

        await self.broker.ack(delivery)
        ctx.advance(DeliveryState.ACKNOWLEDGED)
        logger.info(
            f"Successfully processed order {ctx.order_event.order.id}",
            extra={
                **ctx.log_context(),
                "success": ctx.success,
                "duration_ms": int((time.time() - started) * 1000),
            },
        )
        return ctx

    async def _dispatch(self, ctx: DeliveryContext) -> bool:
        order = ctx.order_event.order  # type: ignore[union-attr]

        if ctx.product_type is ProductType.UNKNOWN:
            logger.warning(
                f"Unknown product type: {order.product_type}", extra=ctx.log_context()
            )
            return False

        lookup = self.registry.lookup(ctx.product_type)  # type: ignore[arg-type]
        if not lookup.found:
            logger.warning(
                f"Unsupported product type: {ctx.product_type.value}",  # type: ignore[union-attr]
                extra={**ctx.log_context(), "error": str(lookup.error)},
            )
            return False

        return await lookup.handler.process_order(order)  # type: ignore[union-attr]

    async def _reject(self, ctx: DeliveryContext) -> None:
        await self.broker.reject(ctx.delivery, requeue=False)
        ctx.advance(DeliveryState.REJECTED)

    async def stop(self) -> None:
        """Stop taking deliveries and let in-flight ones finish"""
        self.running = False
        await self.broker.cancel_consumer()

        pending = set(self._in_flight)
        if not pending:
            logger.info("Stopped order created consumer")
            return

        logger.info(
            f"Draining {len(pending)} in-flight deliveries",
            extra={"in_flight": len(pending), "timeout": self.shutdown_timeout},
        )
        _, still_running = await asyncio.wait(pending, timeout=self.shutdown_timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.warning(
                f"Cancelled {len(still_running)} deliveries at shutdown; "
                "the broker will redeliver them",
                extra={"cancelled": len(still_running)},
            )
        logger.info("Stopped order created consumer")
