import logging
from typing import Any, Dict

from .base import MessageBroker
from .schemas import ResultEvent

logger = logging.getLogger(__name__)


class ProvisioningResultProducer:
    """Publishes provisioning result events back to the order exchange"""

    def __init__(
        self,
        broker: MessageBroker,
        source_service: str = "order-provisioning-service",
    ):
        self.broker = broker
        self.source_service = source_service

    async def publish_result(self, result: ResultEvent) -> None:
        """Publish ``result`` routed by its type.

        Publish errors are logged with the full payload and re-raised; the
        caller decides what happens to the originating delivery.
        """
        log_data: Dict[str, Any] = {
            "message_id": result.message_id,
            "correlation_id": result.correlation_id,
            "order_id": result.order.id,
            "product_type": result.order.product_type,
            "event_type": result.type,
        }

        try:
            await self.broker.publish(
                result.to_json_bytes(),
                routing_key=result.type,
                message_id=result.message_id,
                correlation_id=result.correlation_id,
                headers={"type": result.type, "source": self.source_service},
            )
            logger.info(
                f"Published {result.type} event for order {result.order.id}",
                extra=log_data,
            )
        except Exception as e:
            logger.error(
                f"Failed to publish {result.type} event for order {result.order.id}: {e}",
                extra={**log_data, "event_data": result.model_dump(mode="json")},
            )
            raise
