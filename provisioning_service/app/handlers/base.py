"""
Base class for product provisioning handlers.

A handler runs an ordered list of provisioning steps for a single order.
Each step is awaited before the next one starts. Errors raised by a step are
contained here and reported as ``False``; they never reach the caller.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Tuple

from ..events.schemas import OrderView
from ..models.product_type import ProductType

logger = logging.getLogger(__name__)

ProvisioningStep = Tuple[str, Callable[[OrderView], Awaitable[None]]]


class ProductHandler(ABC):
    """Provision one product type"""

    product_type: ProductType

    def __init__(self, step_delay_scale: float = 1.0):
        self.step_delay_scale = step_delay_scale

    @abstractmethod
    def steps(self) -> List[ProvisioningStep]:
        """Ordered (name, step) pairs making up this product's provisioning"""

    async def process_order(self, order: OrderView) -> bool:
        """Run every provisioning step for ``order``; True only if all succeed"""
        started = time.time()
        logger.info(
            f"Processing {self.product_type.value} order {order.id}",
            extra={"order_id": order.id, "product_type": self.product_type.value},
        )

        current_step = None
        try:
            for current_step, step in self.steps():
                await step(order)
                logger.info(
                    f"Provisioning step '{current_step}' completed for order {order.id}",
                    extra={
                        "order_id": order.id,
                        "product_type": self.product_type.value,
                        "step": current_step,
                    },
                )
        except Exception as e:
            logger.error(
                f"Failed to process {self.product_type.value} order {order.id}: {e}",
                exc_info=True,
                extra={
                    "order_id": order.id,
                    "product_type": self.product_type.value,
                    "step": current_step,
                    "error_type": type(e).__name__,
                    "duration_ms": int((time.time() - started) * 1000),
                },
            )
            return False

        logger.info(
            f"{self.product_type.value} order {order.id} processed successfully",
            extra={
                "order_id": order.id,
                "product_type": self.product_type.value,
                "duration_ms": int((time.time() - started) * 1000),
            },
        )
        return True

    async def _simulate_call(self, milliseconds: int) -> None:
        # Stand-in for the external provisioning system integration
        await asyncio.sleep(milliseconds * self.step_delay_scale / 1000)
