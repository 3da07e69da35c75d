"""Test integration setup, teardown and entities."""
import pytest
from pytest_homeassistant_custom_component.common import async_mock_service

from homeassistant.config_entries import ConfigEntryState
from homeassistant.core import HomeAssistant

from custom_components.pv_notifications.const import DOMAIN


@pytest.mark.asyncio
async def test_setup_entry(hass: HomeAssistant, setup_integration):
    """Test integration sets up correctly."""
    assert setup_integration.state == ConfigEntryState.LOADED
    assert setup_integration.entry_id in hass.data[DOMAIN]


@pytest.mark.asyncio
async def test_unload_entry(hass: HomeAssistant, setup_integration):
    """Test integration unloads correctly."""
    assert await hass.config_entries.async_unload(setup_integration.entry_id)
    await hass.async_block_till_done()
    assert setup_integration.state == ConfigEntryState.NOT_LOADED
    assert setup_integration.entry_id not in hass.data[DOMAIN]
    assert not hass.services.has_service(DOMAIN, "send_test_notification")


@pytest.mark.asyncio
async def test_sensors_created(hass: HomeAssistant, setup_integration):
    """Test all sensors are created."""
    sensors = [
        "sensor.pv_notifications_current_soc",
        "sensor.pv_notifications_current_energy",
        "sensor.pv_notifications_full_cycles_today",
        "sensor.pv_notifications_empty_cycles_today",
        "sensor.pv_notifications_max_soc_today",
        "sensor.pv_notifications_min_soc_today",
        "sensor.pv_notifications_full_cycles_this_week",
        "sensor.pv_notifications_empty_cycles_this_month",
        "sensor.pv_notifications_last_week_production",
        "sensor.pv_notifications_last_month_full_cycles",
        "sensor.pv_notifications_last_notification",
    ]
    for sensor_id in sensors:
        state = hass.states.get(sensor_id)
        assert state is not None, f"Sensor {sensor_id} not created"

    assert hass.states.get("sensor.pv_notifications_full_cycles_today").state == "0"
    assert hass.states.get("sensor.pv_notifications_last_week_production").attributes.get(
        "unit_of_measurement"
    ) == "kWh"


@pytest.mark.asyncio
async def test_sensors_follow_samples(hass: HomeAssistant, setup_integration):
    """Test sensors update after a SOC change."""
    hass.states.async_set("sensor.battery_soc", "64")
    await hass.async_block_till_done()

    assert hass.states.get("sensor.pv_notifications_current_soc").state == "64.0"
    assert hass.states.get("sensor.pv_notifications_current_energy").state == "6.4"


@pytest.mark.asyncio
async def test_binary_sensors_created(hass: HomeAssistant, setup_integration):
    """Test binary sensors are created."""
    for sensor_id in (
        "binary_sensor.pv_notifications_full_notified",
        "binary_sensor.pv_notifications_empty_notified",
        "binary_sensor.pv_notifications_night_window_active",
        "binary_sensor.pv_notifications_quiet_window_active",
        "binary_sensor.pv_notifications_delivery_problem",
        "binary_sensor.pv_notifications_storage_problem",
    ):
        assert hass.states.get(sensor_id) is not None, f"{sensor_id} not created"

    assert hass.states.get("binary_sensor.pv_notifications_full_notified").state == "off"


@pytest.mark.asyncio
async def test_test_button_sends_message(hass: HomeAssistant, setup_integration):
    """Test the test-notification button."""
    calls = async_mock_service(hass, "notify", "telegram")

    await hass.services.async_call(
        "button",
        "press",
        {"entity_id": "button.pv_notifications_send_test_notification"},
        blocking=True,
    )

    await hass.async_block_till_done()

    assert len(calls) == 1
    assert "Testnachricht" in calls[0].data["message"]
    assert "Testnachricht" in hass.states.get("sensor.pv_notifications_last_notification").state


@pytest.mark.asyncio
async def test_quiet_mode_switch(hass: HomeAssistant, setup_integration):
    """Test the quiet mode switch toggles the runtime config."""
    coordinator = hass.data[DOMAIN][setup_integration.entry_id]
    assert hass.states.get("switch.pv_notifications_quiet_mode").state == "off"

    await hass.services.async_call(
        "switch",
        "turn_on",
        {"entity_id": "switch.pv_notifications_quiet_mode"},
        blocking=True,
    )
    await hass.async_block_till_done()

    assert coordinator.state.config.quiet_mode_enabled is True
    assert hass.states.get("switch.pv_notifications_quiet_mode").state == "on"
