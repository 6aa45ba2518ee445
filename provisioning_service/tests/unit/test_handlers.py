from unittest.mock import AsyncMock, patch

import pytest

from provisioning_service.app.events.schemas import OrderView
from provisioning_service.app.handlers import (
    BroadbandLineHandler,
    HandsetHandler,
    RouterHandler,
)


class TestProvisioningHandlers:
    """Tests for the product provisioning handlers."""

    @pytest.fixture
    def handset_order(self):
        return OrderView(id="o-7", product_type="handset")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "handler_class, product_type",
        [
            (RouterHandler, "router"),
            (BroadbandLineHandler, "broadband_line"),
            (HandsetHandler, "handset"),
        ],
    )
    async def test_process_order_succeeds(self, handler_class, product_type):
        handler = handler_class(step_delay_scale=0)

        result = await handler.process_order(OrderView(id="o1", product_type=product_type))

        assert result is True

    @pytest.mark.asyncio
    async def test_steps_run_in_order(self, handset_order):
        handler = HandsetHandler(step_delay_scale=0)
        calls = []

        def recorder(name):
            async def step(order):
                calls.append(name)

            return step

        for name in [
            "check_model_availability",
            "activate_sim_card",
            "configure_device",
            "schedule_delivery",
        ]:
            setattr(handler, name, recorder(name))

        assert await handler.process_order(handset_order) is True
        assert calls == [
            "check_model_availability",
            "activate_sim_card",
            "configure_device",
            "schedule_delivery",
        ]

    @pytest.mark.asyncio
    async def test_step_failure_returns_false_and_stops(self, handset_order):
        handler = HandsetHandler(step_delay_scale=0)

        with patch.object(
            handler, "activate_sim_card", AsyncMock(side_effect=RuntimeError("SIM down"))
        ), patch.object(handler, "configure_device", AsyncMock()) as configure:
            result = await handler.process_order(handset_order)

        assert result is False
        configure.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_step_failure_is_logged(self, handset_order, caplog):
        handler = HandsetHandler(step_delay_scale=0)

        with patch.object(
            handler, "activate_sim_card", AsyncMock(side_effect=RuntimeError("SIM down"))
        ):
            await handler.process_order(handset_order)

        failures = [r for r in caplog.records if r.levelname == "ERROR"]
        assert len(failures) == 1
        assert failures[0].step == "activate_sim_card"
        assert failures[0].order_id == "o-7"

    @pytest.mark.asyncio
    async def test_step_delay_is_scaled(self):
        handler = RouterHandler(step_delay_scale=0.5)

        with patch(
            "provisioning_service.app.handlers.base.asyncio.sleep", AsyncMock()
        ) as sleep:
            await handler.process_order(OrderView(id="o1", product_type="router"))

        assert [c.args[0] for c in sleep.await_args_list] == [0.05, 0.1, 0.075]
