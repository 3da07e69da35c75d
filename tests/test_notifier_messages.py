"""Tests for message formatting and sending."""
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.pv_notifications.core.state import (
    ROLE_CONSUMPTION_POWER,
    ROLE_FEED_IN_ENERGY,
    ROLE_GRID_POWER,
    ROLE_PRODUCTION_ENERGY,
    ROLE_PRODUCTION_POWER,
    PvState,
)
from custom_components.pv_notifications.infra.notifier import SEPARATOR, Notifier
from custom_components.pv_notifications.models import (
    DeliveryResult,
    Direction,
    NotificationKind,
    NotificationRequest,
)

NOW = datetime(2024, 6, 12, 14, 5)


@pytest.fixture
def readings():
    return {
        ROLE_PRODUCTION_POWER: 3500.0,
        ROLE_CONSUMPTION_POWER: 800.0,
        ROLE_PRODUCTION_ENERGY: 20.5,
        ROLE_FEED_IN_ENERGY: -8.2,
        ROLE_GRID_POWER: 150.0,
    }


@pytest.fixture
def gateway(readings):
    gateway = MagicMock()
    gateway.get_sensor_value.side_effect = lambda role, default=0.0: readings.get(role, default)
    gateway.get_weather_tomorrow.return_value = ""
    gateway.deliver = AsyncMock(return_value=DeliveryResult.success())
    return gateway


@pytest.fixture
def state():
    return PvState()


@pytest.fixture
def notifier(state, gateway):
    return Notifier(state, gateway)


def request(kind, soc=None, **kwargs):
    return NotificationRequest(kind=kind, created_at=NOW, soc=soc, **kwargs)


class TestTimestamp:
    """Every message carries the local time."""

    def test_prefix(self):
        assert Notifier.with_timestamp("x", datetime(2024, 1, 1, 7, 3)) == "07:03 - x"

    def test_format_adds_prefix(self, notifier):
        assert notifier.format(request(NotificationKind.FULL, 100)).startswith("14:05 - 🔋")


class TestFullMessage:
    """Battery full."""

    def test_content(self, notifier):
        message = notifier.format_full(request(NotificationKind.FULL, 100))

        assert message.startswith("🔋 *Batterie VOLL* (100%)")
        assert "⚡ Aktuelle Produktion: 3500 W" in message
        assert "🏠 Aktueller Verbrauch: 800 W" in message
        assert "☀️ Produktion heute: 20.50 kWh" in message
        assert "🔌 Eingespeist heute: 8 kWh" in message
        assert "🚗 Jetzt ideal für" in message
        assert "Morgen" not in message

    def test_no_tip_at_low_production(self, notifier, readings):
        readings[ROLE_PRODUCTION_POWER] = 1200.0
        message = notifier.format_full(request(NotificationKind.FULL, 100))
        assert "🚗" not in message

    def test_bad_weather_tip(self, notifier, gateway):
        gateway.get_weather_tomorrow.return_value = "Leichter Regen"
        message = notifier.format_full(request(NotificationKind.FULL, 100))

        assert "🌤️ Morgen: 🌧️ Regen" in message
        assert "Morgen wenig Sonne" in message

    def test_good_weather_has_no_tip(self, notifier, gateway):
        gateway.get_weather_tomorrow.return_value = "sonnig"
        message = notifier.format_full(request(NotificationKind.FULL, 100))

        assert "🌤️ Morgen: ☀️ sonnig" in message
        assert "💡" not in message


class TestEmptyMessage:
    """Battery empty."""

    def test_content(self, notifier):
        message = notifier.format_empty(request(NotificationKind.EMPTY, 0))

        assert message.startswith("🔋 *Batterie LEER* (0%)")
        assert "⚠️ Aktueller Netzbezug: 150 W" in message
        assert "🏠 Verbrauch: 800 W" in message
        assert "💰" not in message

    def test_high_consumption_tip(self, notifier, readings):
        readings[ROLE_CONSUMPTION_POWER] = 2500.0
        message = notifier.format_empty(request(NotificationKind.EMPTY, 0))
        assert "💰 Hoher Verbrauch!" in message

    def test_good_weather_note(self, notifier, gateway):
        gateway.get_weather_tomorrow.return_value = "clear sky"
        message = notifier.format_empty(request(NotificationKind.EMPTY, 0))
        assert "Morgen wieder mehr Sonne" in message


class TestIntermediateMessage:
    """Intermediate steps."""

    def test_rising(self, notifier):
        message = notifier.format_intermediate(
            request(NotificationKind.INTERMEDIATE, 60, step=60, direction=Direction.UP)
        )
        assert message == "🔋 Batterie bei 60% (6.0 kWh) ⬆️\n⚡ Produktion: 3500 W"

    def test_falling_to_reserve(self, notifier):
        message = notifier.format_intermediate(
            request(NotificationKind.INTERMEDIATE, 20, step=20, direction=Direction.DOWN)
        )
        assert "⬇️" in message
        assert message.endswith("⚠️ Bald Reserve nötig")

    def test_rising_from_reserve(self, notifier):
        message = notifier.format_intermediate(
            request(NotificationKind.INTERMEDIATE, 20, step=20, direction=Direction.UP)
        )
        assert message.endswith("✅ Batterie wird geladen")

    @pytest.mark.parametrize("step,hint", [(80, "💡 Bald voll!"), (40, "💡 Noch ausreichend Reserve")])
    def test_step_hints(self, notifier, step, hint):
        message = notifier.format_intermediate(request(NotificationKind.INTERMEDIATE, step, step=step))
        assert message.endswith(hint)

    def test_energy_uses_capacity(self, notifier, state):
        state.config.battery_capacity_wh = 5000.0
        message = notifier.format_intermediate(request(NotificationKind.INTERMEDIATE, 60, step=60))
        assert "(3.0 kWh)" in message


class TestSummaries:
    """Daily, weekly and monthly statistics."""

    def test_daily_summary(self, notifier):
        message = notifier.format_daily_summary(
            request(
                NotificationKind.DAILY_SUMMARY,
                75,
                data={"full_cycles": 1, "empty_cycles": 2, "max_soc": 100, "min_soc": 12},
            )
        )

        assert message.startswith("📊 *Tagesstatistik PV-Anlage*")
        assert message.count(SEPARATOR) == 3
        assert "🔋 Aktueller Ladestand: 75%" in message
        assert "⚡ Aktuelle Energie: 7.5 kWh (10.0 kWh Gesamt)" in message
        assert "☀️ Produktion: 20.50 kWh" in message
        # 20.5 produced, 8.2 fed in
        assert "🏠 Eigenverbrauch: 12.3 kWh (60.0%)" in message
        assert "🔌 Einspeisung: 8 kWh" in message
        assert "🔋 Vollzyklen heute: 1" in message
        assert "📉 Leerzyklen heute: 2" in message
        assert "📈 Max. Ladestand: 100%" in message
        assert "📉 Min. Ladestand: 12%" in message

    def test_daily_summary_without_production(self, notifier, readings):
        readings[ROLE_PRODUCTION_ENERGY] = 0.0
        readings[ROLE_FEED_IN_ENERGY] = 0.0
        message = notifier.format_daily_summary(request(NotificationKind.DAILY_SUMMARY, None))

        assert "(0.0%)" in message
        assert "🔋 Aktueller Ladestand: 0%" in message

    def test_weekly_summary(self, notifier):
        message = notifier.format_weekly_summary(
            request(
                NotificationKind.WEEKLY_SUMMARY,
                data={
                    "production": 120.0,
                    "consumption": 95.5,
                    "feed_in": -40.0,
                    "full_cycles": 5,
                    "empty_cycles": 3,
                },
            )
        )

        assert message.startswith("📊 *Wochenstatistik PV-Anlage*")
        assert "🔋 Vollzyklen diese Woche: 5" in message
        assert "📉 Leerzyklen diese Woche: 3" in message
        assert "☀️ Produktion: 120.00 kWh" in message
        assert "🏠 Verbrauch: 95.50 kWh" in message
        assert "🔌 Einspeisung: 40 kWh" in message

    def test_monthly_summary(self, notifier):
        message = notifier.format_monthly_summary(
            request(NotificationKind.MONTHLY_SUMMARY, data={"full_cycles": 22})
        )

        assert message.startswith("📊 *Monatsstatistik PV-Anlage*")
        assert "🔋 Vollzyklen diesen Monat: 22" in message
        assert "📉 Leerzyklen diesen Monat: 0" in message

    def test_test_message(self, notifier, state):
        assert "unbekannt" in notifier.format_test(request(NotificationKind.TEST))
        state.stats.current_soc = 64
        assert "64%" in notifier.format_test(request(NotificationKind.TEST))


class TestSend:
    """Delivery bookkeeping."""

    async def test_success_records_text(self, notifier, gateway, state):
        state.last_delivery_error = "old"

        result = await notifier.send(request(NotificationKind.FULL, 100))

        assert result.ok
        message = gateway.deliver.await_args.args[0]
        assert message.startswith("14:05 - 🔋 *Batterie VOLL*")
        assert state.last_notification_text == message
        assert state.last_notification_at == NOW
        assert state.last_delivery_error == ""

    async def test_failure_records_error(self, notifier, gateway, state):
        gateway.deliver.return_value = DeliveryResult.error("timeout")

        result = await notifier.send(request(NotificationKind.EMPTY, 0))

        assert not result.ok
        assert state.last_notification_text == ""
        assert state.last_delivery_error == "timeout"
