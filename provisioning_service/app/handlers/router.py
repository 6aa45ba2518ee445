from typing import List

from ..events.schemas import OrderView
from ..models.product_type import ProductType
from .base import ProductHandler, ProvisioningStep


class RouterHandler(ProductHandler):
    """Reserve and ship a router"""

    product_type = ProductType.ROUTER

    def steps(self) -> List[ProvisioningStep]:
        return [
            ("check_inventory", self.check_inventory),
            ("reserve_router", self.reserve_router),
            ("schedule_shipping", self.schedule_shipping),
        ]

    async def check_inventory(self, order: OrderView) -> None:
        await self._simulate_call(100)

    async def reserve_router(self, order: OrderView) -> None:
        await self._simulate_call(200)

    async def schedule_shipping(self, order: OrderView) -> None:
        await self._simulate_call(150)
