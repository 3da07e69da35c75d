"""German message texts per notification kind, and their delivery.

The last delivered text is kept on PvState for the entities.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Callable

from ..core.state import (
    ROLE_CONSUMPTION_ENERGY,
    ROLE_CONSUMPTION_POWER,
    ROLE_FEED_IN_ENERGY,
    ROLE_GRID_POWER,
    ROLE_PRODUCTION_ENERGY,
    ROLE_PRODUCTION_POWER,
)
from ..models import DeliveryResult, Direction, NotificationKind, NotificationRequest
from ..pv_logging import get_logger
from .weather import describe_weather, is_weather_bad, is_weather_good

if TYPE_CHECKING:
    from ..core.gateway import Gateway
    from ..core.state import PvState

SEPARATOR = "━━━━━━━━━━━━━━━━━━━━━━"

# Extra line per intermediate step
_STEP_HINTS = {
    80: "💡 Bald voll!",
    40: "💡 Noch ausreichend Reserve",
}


class Notifier:
    """Formats requests and sends them through the gateway."""

    def __init__(self, state: PvState, gateway: Gateway) -> None:
        """Initialize notifier.

        Args:
            state: Integration state
            gateway: Home Assistant access for readings and sending
        """
        self.state = state
        self.gateway = gateway
        self._logger = get_logger()
        self._formatters: dict[NotificationKind, Callable[[NotificationRequest], str]] = {
            NotificationKind.FULL: self.format_full,
            NotificationKind.EMPTY: self.format_empty,
            NotificationKind.INTERMEDIATE: self.format_intermediate,
            NotificationKind.DAILY_SUMMARY: self.format_daily_summary,
            NotificationKind.WEEKLY_SUMMARY: self.format_weekly_summary,
            NotificationKind.MONTHLY_SUMMARY: self.format_monthly_summary,
            NotificationKind.TEST: self.format_test,
        }

    # ========== Formatting ==========

    @staticmethod
    def with_timestamp(message: str, now: datetime) -> str:
        """Prefix a message with the local time."""
        return f"{now.strftime('%H:%M')} - {message}"

    def format(self, request: NotificationRequest) -> str:
        """Render a request as the text that gets delivered."""
        body = self._formatters[request.kind](request)
        return self.with_timestamp(body, request.created_at)

    def _weather_lines(self, good_news: bool) -> str:
        forecast = self.gateway.get_weather_tomorrow()
        if not forecast:
            return ""

        lines = f"\n🌤️ Morgen: {describe_weather(forecast)}"
        if good_news and is_weather_good(forecast):
            lines += "\n💡 Gute Nachricht: Morgen wieder mehr Sonne!"
        elif not good_news and is_weather_bad(forecast):
            lines += "\n💡 Tipp: Morgen wenig Sonne - heute Verbraucher nutzen!"
        return lines

    def format_full(self, request: NotificationRequest) -> str:
        power = self.gateway.get_sensor_value(ROLE_PRODUCTION_POWER)
        consumption = self.gateway.get_sensor_value(ROLE_CONSUMPTION_POWER)
        production_today = self.gateway.get_sensor_value(ROLE_PRODUCTION_ENERGY)
        feed_in = abs(self.gateway.get_sensor_value(ROLE_FEED_IN_ENERGY))

        message = (
            f"🔋 *Batterie VOLL* ({request.soc:.0f}%)\n\n"
            f"⚡ Aktuelle Produktion: {power:.0f} W\n"
            f"🏠 Aktueller Verbrauch: {consumption:.0f} W\n"
            f"☀️ Produktion heute: {production_today:.2f} kWh\n"
            f"🔌 Eingespeist heute: {feed_in:.0f} kWh"
        )
        message += self._weather_lines(good_news=False)

        if power > self.state.config.high_production_w:
            message += "\n\n🚗 Jetzt ideal für: Elektroauto, Waschmaschine, Spülmaschine!"
        return message

    def format_empty(self, request: NotificationRequest) -> str:
        grid_power = self.gateway.get_sensor_value(ROLE_GRID_POWER)
        consumption = self.gateway.get_sensor_value(ROLE_CONSUMPTION_POWER)

        message = (
            f"🔋 *Batterie LEER* ({request.soc:.0f}%)\n\n"
            f"⚠️ Aktueller Netzbezug: {grid_power:.0f} W\n"
            f"🏠 Verbrauch: {consumption:.0f} W"
        )
        message += self._weather_lines(good_news=True)

        if consumption > self.state.config.high_consumption_w:
            message += "\n\n💰 Hoher Verbrauch! Nicht benötigte Geräte ausschalten."
        return message

    def format_intermediate(self, request: NotificationRequest) -> str:
        power = self.gateway.get_sensor_value(ROLE_PRODUCTION_POWER)
        energy = self.state.config.energy_kwh(request.soc)
        trend = "⬆️" if request.direction == Direction.UP else "⬇️"

        message = (
            f"🔋 Batterie bei {request.soc:.0f}% ({energy:.1f} kWh) {trend}\n"
            f"⚡ Produktion: {power:.0f} W"
        )

        if request.step == 20:
            hint = "⚠️ Bald Reserve nötig" if request.direction == Direction.DOWN else "✅ Batterie wird geladen"
        else:
            hint = _STEP_HINTS.get(request.step, "")
        if hint:
            message += f"\n{hint}"
        return message

    def format_daily_summary(self, request: NotificationRequest) -> str:
        config = self.state.config
        soc = request.soc or 0.0
        capacity = config.battery_capacity_wh / 1000.0

        production = self.gateway.get_sensor_value(ROLE_PRODUCTION_ENERGY)
        feed_in = abs(self.gateway.get_sensor_value(ROLE_FEED_IN_ENERGY))
        self_consumption = round(production - feed_in, 1)
        rate = round(self_consumption / production * 100, 1) if production > 0 else 0.0

        data = request.data
        return (
            "📊 *Tagesstatistik PV-Anlage*\n"
            f"{SEPARATOR}\n"
            f"🔋 Aktueller Ladestand: {soc:.0f}%\n"
            f"⚡ Aktuelle Energie: {config.energy_kwh(soc):.1f} kWh ({capacity:.1f} kWh Gesamt)\n"
            f"{SEPARATOR}\n"
            f"☀️ Produktion: {production:.2f} kWh\n"
            f"🏠 Eigenverbrauch: {self_consumption:.1f} kWh ({rate:.1f}%)\n"
            f"🔌 Einspeisung: {feed_in:.0f} kWh\n"
            f"{SEPARATOR}\n"
            f"🔋 Vollzyklen heute: {data.get('full_cycles', 0)}\n"
            f"📉 Leerzyklen heute: {data.get('empty_cycles', 0)}\n"
            f"📈 Max. Ladestand: {data.get('max_soc', 0):.0f}%\n"
            f"📉 Min. Ladestand: {data.get('min_soc', 100):.0f}%"
        )

    def _format_period(self, title: str, label: str, data: dict) -> str:
        production = data.get("production", 0.0)
        feed_in = abs(data.get("feed_in", 0.0))
        return (
            f"📊 *{title} PV-Anlage*\n"
            f"{SEPARATOR}\n"
            f"🔋 Vollzyklen {label}: {data.get('full_cycles', 0)}\n"
            f"📉 Leerzyklen {label}: {data.get('empty_cycles', 0)}\n"
            f"{SEPARATOR}\n"
            f"☀️ Produktion: {production:.2f} kWh\n"
            f"🏠 Verbrauch: {data.get('consumption', 0.0):.2f} kWh\n"
            f"🔌 Einspeisung: {feed_in:.0f} kWh\n"
            f"{SEPARATOR}\n"
            "💡 Ein gesunder Zyklus pro Tag ist normal.\n"
            "🔋 Bei vielen Zyklen: Batterie-Settings prüfen."
        )

    def format_weekly_summary(self, request: NotificationRequest) -> str:
        return self._format_period("Wochenstatistik", "diese Woche", request.data)

    def format_monthly_summary(self, request: NotificationRequest) -> str:
        return self._format_period("Monatsstatistik", "diesen Monat", request.data)

    def format_test(self, request: NotificationRequest) -> str:
        soc = self.state.stats.current_soc
        soc_text = f"{soc:.0f}%" if soc is not None else "unbekannt"
        return f"🧪 *Testnachricht PV Notifications*\n🔋 Aktueller Ladestand: {soc_text}"

    # ========== Sending ==========

    async def send(self, request: NotificationRequest) -> DeliveryResult:
        """Format and deliver a request.

        Returns:
            DeliveryResult from the gateway
        """
        message = self.format(request)
        self._logger.info(
            "NOTIFICATION_DELIVERING",
            kind=request.kind.value,
            priority=request.priority.value,
            soc=request.soc,
        )

        result = await self.gateway.deliver(message)

        if result.ok:
            self.state.last_notification_text = message
            self.state.last_notification_at = request.created_at
            self.state.last_delivery_error = ""
        else:
            self.state.last_delivery_error = result.reason
        return result
