from typing import List

from ..events.schemas import OrderView
from ..models.product_type import ProductType
from .base import ProductHandler, ProvisioningStep


class BroadbandLineHandler(ProductHandler):
    """Check, survey and provision a broadband line"""

    product_type = ProductType.BROADBAND_LINE

    def steps(self) -> List[ProvisioningStep]:
        return [
            ("check_line_availability", self.check_line_availability),
            ("schedule_technician", self.schedule_technician),
            ("provision_line", self.provision_line),
        ]

    async def check_line_availability(self, order: OrderView) -> None:
        await self._simulate_call(300)

    async def schedule_technician(self, order: OrderView) -> None:
        await self._simulate_call(500)

    async def provision_line(self, order: OrderView) -> None:
        await self._simulate_call(200)
