"""Tests for the internal event bus."""
import logging
from unittest.mock import AsyncMock

import pytest

from homeassistant.core import HomeAssistant
from homeassistant.helpers.dispatcher import async_dispatcher_connect

from custom_components.pv_notifications.const import SIGNAL_UPDATE
from custom_components.pv_notifications.core.events import PvEvent, PvEventBus


@pytest.fixture
def bus(hass: HomeAssistant):
    return PvEventBus(hass)


async def test_handlers_receive_data(bus):
    handler = AsyncMock()
    bus.on(PvEvent.CYCLE_RECORDED, handler)

    await bus.emit(PvEvent.CYCLE_RECORDED, kind="full")

    handler.assert_awaited_once()
    event_data = handler.await_args.args[0]
    assert event_data.event == PvEvent.CYCLE_RECORDED
    assert event_data.data == {"kind": "full"}
    assert event_data.to_dict()["event"] == "pv.cycle_recorded"


async def test_unsubscribe(bus):
    handler = AsyncMock()
    unsubscribe = bus.on(PvEvent.SAMPLE_RECEIVED, handler)
    unsubscribe()

    await bus.emit(PvEvent.SAMPLE_RECEIVED, soc=50)

    handler.assert_not_awaited()


async def test_failing_handler_does_not_block_others(bus, caplog):
    failing = AsyncMock(side_effect=RuntimeError("boom"))
    healthy = AsyncMock()
    bus.on(PvEvent.DAILY_RESET, failing)
    bus.on(PvEvent.DAILY_RESET, healthy)

    with caplog.at_level(logging.ERROR, logger="custom_components.pv_notifications"):
        await bus.emit(PvEvent.DAILY_RESET)

    healthy.assert_awaited_once()
    assert "EVENT_HANDLER_ERROR | event_type=DAILY_RESET" in caplog.text
    assert "error=boom" in caplog.text


async def test_ui_events_signal_entities(hass: HomeAssistant, bus):
    updates = []
    async_dispatcher_connect(hass, SIGNAL_UPDATE, lambda: updates.append(True))

    await bus.emit(PvEvent.SAMPLE_RECEIVED, soc=42)
    await bus.emit(PvEvent.NOTIFICATION_REQUESTED, kind="full")
    await hass.async_block_till_done()

    assert len(updates) == 1

    await bus.emit_state_update()
    await hass.async_block_till_done()

    assert len(updates) == 2
