"""Fixtures for testing."""
from datetime import datetime, time
from unittest.mock import AsyncMock, MagicMock

import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from homeassistant.core import HomeAssistant, State

from custom_components.pv_notifications.const import (
    DOMAIN,
    CONF_BATTERY_CAPACITY_WH,
    CONF_BATTERY_SOC_SENSOR,
    CONF_CONSUMPTION_POWER_SENSOR,
    CONF_FEED_IN_ENERGY_SENSOR,
    CONF_GRID_POWER_SENSOR,
    CONF_NOTIFY_SERVICE,
    CONF_PRODUCTION_ENERGY_SENSOR,
    CONF_PRODUCTION_POWER_SENSOR,
    CONF_RECIPIENTS,
    CONF_WEATHER_TOMORROW_SENSOR,
)
from custom_components.pv_notifications.core.state import NotifierConfig, ScheduleConfig
from custom_components.pv_notifications.core.time_window import TimeWindow


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations):
    """Enable custom integrations defined in the test dir."""
    yield


@pytest.fixture
def base_time():
    """A weekday afternoon, outside the default night window."""
    return datetime(2024, 6, 12, 14, 0)


@pytest.fixture
def notifier_config():
    """Default thresholds with night and quiet mode off."""
    return NotifierConfig(
        threshold_full=100,
        threshold_empty=0,
        threshold_reset_full=95,
        threshold_reset_empty=5,
        intermediate_steps=(20, 40, 60, 80),
        night_mode_enabled=False,
        night_window=TimeWindow(time(0, 0), time(8, 0)),
        quiet_mode_enabled=False,
        quiet_window=TimeWindow(time(22, 0), time(7, 0)),
    )


@pytest.fixture
def schedule_config():
    """Default schedule with monthly rollover enabled."""
    return ScheduleConfig(
        daily_summary_enabled=True,
        daily_summary_time=time(20, 0),
        daily_reset_time=time(22, 0),
        weekly_summary_enabled=True,
        weekly_weekday=6,
        weekly_time=time(20, 0),
        monthly_summary_enabled=True,
        monthly_day=1,
        monthly_time=time(20, 0),
    )


@pytest.fixture
def entry_data():
    """Config entry data for a fully configured installation."""
    return {
        CONF_BATTERY_SOC_SENSOR: "sensor.battery_soc",
        CONF_BATTERY_CAPACITY_WH: 10000.0,
        CONF_PRODUCTION_POWER_SENSOR: "sensor.pv_power",
        CONF_PRODUCTION_ENERGY_SENSOR: "sensor.pv_energy_today",
        CONF_CONSUMPTION_POWER_SENSOR: "sensor.house_power",
        CONF_FEED_IN_ENERGY_SENSOR: "sensor.feed_in_today",
        CONF_GRID_POWER_SENSOR: "sensor.grid_power",
        CONF_WEATHER_TOMORROW_SENSOR: "sensor.weather_tomorrow",
        CONF_NOTIFY_SERVICE: "notify.telegram",
        CONF_RECIPIENTS: "alice, bob",
    }


@pytest.fixture
def mock_config_entry(entry_data):
    """Mock a config entry."""
    entry = MagicMock()
    entry.data = entry_data
    entry.options = {}
    entry.entry_id = "test_entry_id"
    return entry


@pytest.fixture
def mock_hass():
    """Mock Home Assistant instance."""
    hass = MagicMock()
    hass.states = MagicMock()
    hass.states.get.return_value = None
    hass.services = MagicMock()
    hass.services.async_call = AsyncMock()
    return hass


@pytest.fixture
def pv_states():
    """Standard installation states."""
    return {
        "sensor.battery_soc": State(
            "sensor.battery_soc",
            "50",
            {"unit_of_measurement": "%", "device_class": "battery"},
        ),
        "sensor.pv_power": State("sensor.pv_power", "3500", {"unit_of_measurement": "W"}),
        "sensor.pv_energy_today": State(
            "sensor.pv_energy_today", "20.5", {"unit_of_measurement": "kWh"}
        ),
        "sensor.house_power": State("sensor.house_power", "800", {"unit_of_measurement": "W"}),
        "sensor.feed_in_today": State(
            "sensor.feed_in_today", "-8.2", {"unit_of_measurement": "kWh"}
        ),
        "sensor.grid_power": State("sensor.grid_power", "150", {"unit_of_measurement": "W"}),
        "sensor.weather_tomorrow": State("sensor.weather_tomorrow", "Leichter Regen"),
    }


@pytest.fixture
async def setup_integration(hass: HomeAssistant, pv_states, entry_data):
    """Set up integration with mock states."""
    for entity_id, state in pv_states.items():
        hass.states.async_set(entity_id, state.state, state.attributes)

    entry = MockConfigEntry(domain=DOMAIN, data=entry_data, entry_id="pv_test_entry")
    entry.add_to_hass(hass)

    await hass.config_entries.async_setup(entry.entry_id)
    await hass.async_block_till_done()

    return entry
