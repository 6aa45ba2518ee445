from typing import List

from ..events.schemas import OrderView
from ..models.product_type import ProductType
from .base import ProductHandler, ProvisioningStep


class HandsetHandler(ProductHandler):
    """Activate, configure and deliver a handset"""

    product_type = ProductType.HANDSET

    def steps(self) -> List[ProvisioningStep]:
        return [
            ("check_model_availability", self.check_model_availability),
            ("activate_sim_card", self.activate_sim_card),
            ("configure_device", self.configure_device),
            ("schedule_delivery", self.schedule_delivery),
        ]

    async def check_model_availability(self, order: OrderView) -> None:
        await self._simulate_call(150)

    async def activate_sim_card(self, order: OrderView) -> None:
        await self._simulate_call(250)

    async def configure_device(self, order: OrderView) -> None:
        await self._simulate_call(300)

    async def schedule_delivery(self, order: OrderView) -> None:
        await self._simulate_call(100)
