"""Test the PV Notifications coordinator wiring."""
from datetime import datetime, time
from unittest.mock import AsyncMock, patch

import pytest
from pytest_homeassistant_custom_component.common import async_mock_service

from homeassistant.core import HomeAssistant

from custom_components.pv_notifications.const import (
    CONF_INTERMEDIATE_STEPS,
    CONF_NIGHT_START,
    CONF_RECIPIENTS,
    CONF_THRESHOLD_FULL,
    DOMAIN,
    SERVICE_RESET_STATISTICS,
    SERVICE_SEND_DAILY_SUMMARY,
    SERVICE_SEND_TEST_NOTIFICATION,
    STORAGE_KEY,
)
from custom_components.pv_notifications.coordinator import (
    PvNotificationsCoordinator,
    parse_clock,
    parse_recipients,
    parse_steps,
)
from custom_components.pv_notifications.core.state import ROLE_PRODUCTION_POWER
from custom_components.pv_notifications.models import NotificationKind

AFTERNOON = datetime(2024, 6, 12, 14, 0)


@pytest.fixture
def notify_calls(hass: HomeAssistant):
    return async_mock_service(hass, "notify", "telegram")


@pytest.fixture
async def coordinator(hass: HomeAssistant, mock_config_entry, pv_states):
    for entity_id, state in pv_states.items():
        hass.states.async_set(entity_id, state.state, state.attributes)

    coordinator = PvNotificationsCoordinator(hass, mock_config_entry)
    await coordinator.async_init()
    yield coordinator
    await coordinator.async_shutdown()


class TestParsers:
    """Config value parsing."""

    def test_parse_steps(self):
        assert parse_steps("80, 20,40,,20") == (20, 40, 80)
        assert parse_steps([60, "30"]) == (30, 60)
        assert parse_steps("") == ()

    def test_parse_steps_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_steps("20,forty")

    def test_parse_recipients(self):
        assert parse_recipients("alice, bob ,") == ["alice", "bob"]
        assert parse_recipients(["carol"]) == ["carol"]
        assert parse_recipients(None) == []

    def test_parse_clock(self):
        assert parse_clock("22:30", "00:00:00") == time(22, 30)
        assert parse_clock(time(6, 0), "00:00:00") == time(6, 0)
        assert parse_clock("25:99", "08:00:00") == time(8, 0)
        assert parse_clock(None, "08:00:00") == time(8, 0)


class TestStateFromConfig:
    """Configuration mapping."""

    def test_defaults_and_entry_data(self, hass: HomeAssistant, mock_config_entry):
        coordinator = PvNotificationsCoordinator(hass, mock_config_entry)
        state = coordinator.state

        assert state.soc_sensor_entity == "sensor.battery_soc"
        assert state.sensors[ROLE_PRODUCTION_POWER] == "sensor.pv_power"
        assert "consumption_energy" not in state.sensors
        assert state.notify_service == "notify.telegram"
        assert state.recipients == ["alice", "bob"]

        assert state.config.threshold_full == 100
        assert state.config.intermediate_steps == (20, 40, 60, 80)
        assert state.config.night_mode_enabled is True
        assert str(state.config.night_window) == "00:00-08:00"
        assert state.schedule.weekly_weekday == 6
        assert state.schedule.monthly_summary_enabled is False

    def test_options_override_data(self, hass: HomeAssistant, mock_config_entry):
        mock_config_entry.options = {
            CONF_THRESHOLD_FULL: 98,
            CONF_INTERMEDIATE_STEPS: "30,70",
            CONF_NIGHT_START: "23:00:00",
            CONF_RECIPIENTS: "",
        }

        state = PvNotificationsCoordinator(hass, mock_config_entry).state

        assert state.config.threshold_full == 98
        assert state.config.intermediate_steps == (30, 70)
        assert state.config.night_window.start == time(23, 0)
        assert state.recipients == []

    def test_invalid_steps_fall_back(self, hass: HomeAssistant, mock_config_entry):
        mock_config_entry.options = {CONF_INTERMEDIATE_STEPS: "a,b"}
        state = PvNotificationsCoordinator(hass, mock_config_entry).state
        assert state.config.intermediate_steps == (20, 40, 60, 80)

    def test_components_share_state(self, hass: HomeAssistant, mock_config_entry):
        coordinator = PvNotificationsCoordinator(hass, mock_config_entry)

        assert coordinator.threshold_notifier.state is coordinator.state.notifier
        assert coordinator.threshold_notifier.config is coordinator.state.config
        assert coordinator.aggregator.state is coordinator.state.stats


class TestSamples:
    """SOC sample processing."""

    async def test_full_sample_notifies_and_persists(
        self, hass: HomeAssistant, coordinator, notify_calls, hass_storage
    ):
        result = await coordinator.async_process_sample("100", AFTERNOON)

        assert result.ok
        assert len(notify_calls) == 1
        message = notify_calls[0].data["message"]
        assert message.startswith("14:00 - 🔋 *Batterie VOLL* (100%)")
        assert notify_calls[0].data["target"] == ["alice", "bob"]

        stats = coordinator.state.stats
        assert stats.full_cycles_today == 1
        assert stats.current_soc == 100
        assert stats.current_energy_kwh == 10.0
        assert coordinator.state.last_notification_text == message

        stored = hass_storage[f"{STORAGE_KEY}.test_entry_id"]["data"]
        assert stored["statistics.full_cycles_today"] == 1
        assert not coordinator.aggregator.has_pending_changes

    async def test_repeated_full_is_silent(self, coordinator, notify_calls):
        await coordinator.async_process_sample(100, AFTERNOON)
        assert await coordinator.async_process_sample(100, AFTERNOON.replace(minute=30)) is None
        assert len(notify_calls) == 1

    async def test_invalid_sample(self, coordinator, notify_calls):
        assert await coordinator.async_process_sample("garbage", AFTERNOON) is None
        assert coordinator.state.stats.current_soc == 50
        assert notify_calls == []

    async def test_delivery_failure_is_recorded(self, coordinator):
        # No notify.telegram service registered
        result = await coordinator.async_process_sample(0, AFTERNOON)

        assert not result.ok
        assert coordinator.state.last_delivery_error
        assert coordinator.state.notifier.empty_flag is True
        assert coordinator.state.stats.empty_cycles_today == 1

    async def test_state_change_event(self, hass: HomeAssistant, coordinator):
        hass.states.async_set("sensor.battery_soc", "63")
        await hass.async_block_till_done()

        assert coordinator.state.stats.current_soc == 63
        assert coordinator.state.notifier.previous_soc == 63

    async def test_unavailable_state_ignored(self, hass: HomeAssistant, coordinator):
        hass.states.async_set("sensor.battery_soc", "unavailable")
        await hass.async_block_till_done()

        assert coordinator.state.stats.current_soc == 50


class TestStartup:
    """State taken over when the coordinator starts."""

    async def test_current_soc_seeded_from_sensor(self, coordinator, notify_calls):
        stats = coordinator.state.stats
        assert stats.current_soc == 50
        assert stats.current_energy_kwh == 5.0
        assert notify_calls == []
        assert coordinator.state.notifier.full_flag is False

    async def test_daily_summary_after_restart_reports_live_soc(
        self, coordinator, notify_calls
    ):
        await coordinator.async_process_tick(datetime(2024, 6, 12, 20, 0))

        message = notify_calls[-1].data["message"]
        assert "🔋 Aktueller Ladestand: 50%" in message
        assert "⚡ Aktuelle Energie: 5.0 kWh" in message
        assert "📈 Max. Ladestand: 50%" in message

    async def test_unavailable_sensor_leaves_soc_unknown(
        self, hass: HomeAssistant, mock_config_entry
    ):
        hass.states.async_set("sensor.battery_soc", "unavailable")

        coordinator = PvNotificationsCoordinator(hass, mock_config_entry)
        await coordinator.async_init()
        try:
            assert coordinator.state.stats.current_soc is None
        finally:
            await coordinator.async_shutdown()


class TestStorageHealth:
    """Storage problem tracking from save outcomes."""

    async def test_failed_save_flags_problem_until_next_save(self, coordinator):
        with patch.object(
            coordinator.store._store,
            "async_save",
            AsyncMock(side_effect=OSError("disk full")),
        ):
            await coordinator.async_process_sample(100, AFTERNOON)

        assert coordinator.state.last_persistence_error == "disk full"
        assert coordinator.aggregator.has_pending_changes

        await coordinator.async_process_sample(60, AFTERNOON.replace(minute=5))

        assert coordinator.state.last_persistence_error == ""
        assert not coordinator.aggregator.has_pending_changes


class TestTick:
    """Schedule ticks."""

    async def test_daily_summary_at_configured_time(self, coordinator, notify_calls):
        await coordinator.async_process_sample(55, AFTERNOON)

        results = await coordinator.async_process_tick(datetime(2024, 6, 12, 20, 0))

        assert [r.ok for r in results] == [True]
        message = notify_calls[-1].data["message"]
        assert message.startswith("20:00 - 📊 *Tagesstatistik PV-Anlage*")
        assert "🔋 Aktueller Ladestand: 55%" in message

    async def test_weekly_rollover_uses_sensor_readings(self, coordinator, notify_calls):
        coordinator.state.stats.full_cycles_week = 3

        await coordinator.async_process_tick(datetime(2024, 6, 16, 20, 0))

        last_week = coordinator.state.stats.last_week
        assert last_week.full_cycles == 3
        assert last_week.production == 20.5
        assert last_week.feed_in == -8.2
        assert coordinator.state.stats.full_cycles_week == 0
        assert any("Wochenstatistik" in call.data["message"] for call in notify_calls)

    async def test_quiet_minute(self, coordinator, notify_calls):
        assert await coordinator.async_process_tick(datetime(2024, 6, 12, 14, 1)) == []
        assert notify_calls == []


class TestManualTriggers:
    """Services, buttons and switches."""

    async def test_services_registered(self, hass: HomeAssistant, coordinator):
        for service in (
            SERVICE_SEND_TEST_NOTIFICATION,
            SERVICE_SEND_DAILY_SUMMARY,
            SERVICE_RESET_STATISTICS,
        ):
            assert hass.services.has_service(DOMAIN, service)

    async def test_services_removed_on_shutdown(
        self, hass: HomeAssistant, mock_config_entry
    ):
        coordinator = PvNotificationsCoordinator(hass, mock_config_entry)
        await coordinator.async_init()
        await coordinator.async_shutdown()

        assert not hass.services.has_service(DOMAIN, SERVICE_SEND_TEST_NOTIFICATION)

    async def test_test_notification_service(self, hass: HomeAssistant, coordinator, notify_calls):
        await hass.services.async_call(DOMAIN, SERVICE_SEND_TEST_NOTIFICATION, {}, blocking=True)

        assert len(notify_calls) == 1
        assert "Testnachricht" in notify_calls[0].data["message"]

    async def test_daily_summary_service(self, hass: HomeAssistant, coordinator, notify_calls):
        await hass.services.async_call(DOMAIN, SERVICE_SEND_DAILY_SUMMARY, {}, blocking=True)
        assert "Tagesstatistik" in notify_calls[0].data["message"]

    async def test_reset_statistics(self, hass: HomeAssistant, coordinator, notify_calls):
        await coordinator.async_process_sample(100, AFTERNOON)
        assert coordinator.state.stats.full_cycles_month == 1

        await hass.services.async_call(DOMAIN, SERVICE_RESET_STATISTICS, {}, blocking=True)

        stats = coordinator.state.stats
        assert stats.full_cycles_today == stats.full_cycles_week == stats.full_cycles_month == 0

    async def test_runtime_mode_toggles(self, coordinator):
        await coordinator.set_night_mode(False)
        await coordinator.set_quiet_mode(True)

        assert coordinator.state.config.night_mode_enabled is False
        assert coordinator.threshold_notifier.is_quiet(datetime(2024, 6, 12, 23, 0))

    async def test_night_toggle_affects_decisions(self, coordinator, notify_calls):
        await coordinator.set_night_mode(False)
        result = await coordinator.async_process_sample(100, datetime(2024, 6, 12, 3, 0))

        assert result.ok
        assert notify_calls[0].data["message"].startswith("03:00 - ")
        assert NotificationKind.FULL in coordinator.state.notifier.last_notification_at
