"""Config flow for PV Notifications integration."""
from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import HomeAssistant, callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector
from homeassistant.util import dt as dt_util

from .const import (
    CONF_BATTERY_CAPACITY_WH,
    CONF_BATTERY_SOC_SENSOR,
    CONF_CONSUMPTION_ENERGY_SENSOR,
    CONF_CONSUMPTION_POWER_SENSOR,
    CONF_DAILY_RESET_TIME,
    CONF_DAILY_SUMMARY_ENABLED,
    CONF_DAILY_SUMMARY_TIME,
    CONF_FEED_IN_ENERGY_SENSOR,
    CONF_GRID_POWER_SENSOR,
    CONF_HIGH_CONSUMPTION_W,
    CONF_HIGH_PRODUCTION_W,
    CONF_IGNORE_EMPTY_AT_NIGHT,
    CONF_INTERMEDIATE_STEPS,
    CONF_MIN_INTERVAL_EMPTY,
    CONF_MIN_INTERVAL_FULL,
    CONF_MIN_INTERVAL_INTERMEDIATE,
    CONF_MONTHLY_DAY,
    CONF_MONTHLY_SUMMARY_ENABLED,
    CONF_MONTHLY_TIME,
    CONF_NIGHT_END,
    CONF_NIGHT_MODE_ENABLED,
    CONF_NIGHT_START,
    CONF_NIGHT_SUPPRESS_FULL,
    CONF_NIGHT_SUPPRESS_INTERMEDIATE,
    CONF_NOTIFY_SERVICE,
    CONF_PRODUCTION_ENERGY_SENSOR,
    CONF_PRODUCTION_POWER_SENSOR,
    CONF_QUIET_END,
    CONF_QUIET_MODE_ENABLED,
    CONF_QUIET_START,
    CONF_RECIPIENTS,
    CONF_THRESHOLD_EMPTY,
    CONF_THRESHOLD_FULL,
    CONF_THRESHOLD_RESET_EMPTY,
    CONF_THRESHOLD_RESET_FULL,
    CONF_WEATHER_TOMORROW_SENSOR,
    CONF_WEEKLY_SUMMARY_ENABLED,
    CONF_WEEKLY_TIME,
    CONF_WEEKLY_WEEKDAY,
    DEFAULT_BATTERY_CAPACITY_WH,
    DEFAULT_DAILY_RESET_TIME,
    DEFAULT_DAILY_SUMMARY_ENABLED,
    DEFAULT_DAILY_SUMMARY_TIME,
    DEFAULT_HIGH_CONSUMPTION_W,
    DEFAULT_HIGH_PRODUCTION_W,
    DEFAULT_IGNORE_EMPTY_AT_NIGHT,
    DEFAULT_INTERMEDIATE_STEPS,
    DEFAULT_MIN_INTERVAL_MINUTES,
    DEFAULT_MONTHLY_DAY,
    DEFAULT_MONTHLY_SUMMARY_ENABLED,
    DEFAULT_MONTHLY_TIME,
    DEFAULT_NAME,
    DEFAULT_NIGHT_END,
    DEFAULT_NIGHT_MODE_ENABLED,
    DEFAULT_NIGHT_START,
    DEFAULT_NIGHT_SUPPRESS_FULL,
    DEFAULT_NIGHT_SUPPRESS_INTERMEDIATE,
    DEFAULT_QUIET_END,
    DEFAULT_QUIET_MODE_ENABLED,
    DEFAULT_QUIET_START,
    DEFAULT_THRESHOLD_EMPTY,
    DEFAULT_THRESHOLD_FULL,
    DEFAULT_THRESHOLD_RESET_EMPTY,
    DEFAULT_THRESHOLD_RESET_FULL,
    DEFAULT_WEEKLY_SUMMARY_ENABLED,
    DEFAULT_WEEKLY_TIME,
    DEFAULT_WEEKLY_WEEKDAY,
    DOMAIN,
)

WEEKDAY_OPTIONS = [
    {"value": "0", "label": "Monday"},
    {"value": "1", "label": "Tuesday"},
    {"value": "2", "label": "Wednesday"},
    {"value": "3", "label": "Thursday"},
    {"value": "4", "label": "Friday"},
    {"value": "5", "label": "Saturday"},
    {"value": "6", "label": "Sunday"},
]

OPTIONAL_SENSOR_KEYS = (
    CONF_PRODUCTION_POWER_SENSOR,
    CONF_PRODUCTION_ENERGY_SENSOR,
    CONF_CONSUMPTION_POWER_SENSOR,
    CONF_CONSUMPTION_ENERGY_SENSOR,
    CONF_FEED_IN_ENERGY_SENSOR,
    CONF_GRID_POWER_SENSOR,
    CONF_WEATHER_TOMORROW_SENSOR,
)


def _percent_selector(step: float = 1) -> selector.NumberSelector:
    return selector.NumberSelector(
        selector.NumberSelectorConfig(
            min=0,
            max=100,
            step=step,
            unit_of_measurement="%",
            mode=selector.NumberSelectorMode.BOX,
        )
    )


def _minutes_selector() -> selector.NumberSelector:
    return selector.NumberSelector(
        selector.NumberSelectorConfig(
            min=1,
            max=1440,
            step=1,
            unit_of_measurement="min",
            mode=selector.NumberSelectorMode.BOX,
        )
    )


def _capacity_selector() -> selector.NumberSelector:
    return selector.NumberSelector(
        selector.NumberSelectorConfig(
            min=100,
            max=200000,
            step=100,
            unit_of_measurement="Wh",
            mode=selector.NumberSelectorMode.BOX,
        )
    )


def notify_service_options(hass: HomeAssistant) -> list[dict[str, str]]:
    """Registered notify services as select options."""
    return [
        {"value": f"notify.{name}", "label": f"notify.{name}"}
        for name in sorted(hass.services.async_services().get("notify", {}))
    ]


def _watts_selector() -> selector.NumberSelector:
    return selector.NumberSelector(
        selector.NumberSelectorConfig(
            min=0,
            max=100000,
            step=100,
            unit_of_measurement="W",
            mode=selector.NumberSelectorMode.BOX,
        )
    )


def validate_thresholds(user_input: dict[str, Any]) -> dict[str, str]:
    """Check threshold ordering and the intermediate step list."""
    errors: dict[str, str] = {}

    full = user_input.get(CONF_THRESHOLD_FULL, DEFAULT_THRESHOLD_FULL)
    empty = user_input.get(CONF_THRESHOLD_EMPTY, DEFAULT_THRESHOLD_EMPTY)
    reset_full = user_input.get(CONF_THRESHOLD_RESET_FULL, DEFAULT_THRESHOLD_RESET_FULL)
    reset_empty = user_input.get(CONF_THRESHOLD_RESET_EMPTY, DEFAULT_THRESHOLD_RESET_EMPTY)

    if full <= empty:
        errors["base"] = "full_must_exceed_empty"
    elif reset_full >= full:
        errors[CONF_THRESHOLD_RESET_FULL] = "reset_full_not_below_full"
    elif reset_empty <= empty:
        errors[CONF_THRESHOLD_RESET_EMPTY] = "reset_empty_not_above_empty"

    steps = str(user_input.get(CONF_INTERMEDIATE_STEPS, DEFAULT_INTERMEDIATE_STEPS))
    try:
        values = [int(part.strip()) for part in steps.split(",") if part.strip()]
    except ValueError:
        errors[CONF_INTERMEDIATE_STEPS] = "invalid_steps"
    else:
        if any(value < 1 or value > 99 for value in values):
            errors[CONF_INTERMEDIATE_STEPS] = "invalid_steps"

    return errors


def _is_empty_window(start: Any, end: Any) -> bool:
    start_time = dt_util.parse_time(str(start))
    end_time = dt_util.parse_time(str(end))
    if start_time is None or end_time is None:
        return True
    return (start_time.hour, start_time.minute) == (end_time.hour, end_time.minute)


def validate_windows(user_input: dict[str, Any]) -> dict[str, str]:
    """Night and quiet windows must not start and end at the same minute."""
    errors: dict[str, str] = {}

    if _is_empty_window(
        user_input.get(CONF_NIGHT_START, DEFAULT_NIGHT_START),
        user_input.get(CONF_NIGHT_END, DEFAULT_NIGHT_END),
    ):
        errors[CONF_NIGHT_END] = "invalid_window"

    if _is_empty_window(
        user_input.get(CONF_QUIET_START, DEFAULT_QUIET_START),
        user_input.get(CONF_QUIET_END, DEFAULT_QUIET_END),
    ):
        errors[CONF_QUIET_END] = "invalid_window"

    return errors


def validate_notify_service(user_input: dict[str, Any]) -> dict[str, str]:
    """Notify service, when given, is "domain.service"."""
    service = user_input.get(CONF_NOTIFY_SERVICE, "")
    if service and "." not in service:
        return {CONF_NOTIFY_SERVICE: "invalid_notify_service"}
    return {}


def thresholds_schema(get: Any) -> dict:
    """Threshold fields with defaults from the getter."""
    return {
        vol.Required(
            CONF_THRESHOLD_FULL, default=get(CONF_THRESHOLD_FULL, DEFAULT_THRESHOLD_FULL)
        ): _percent_selector(),
        vol.Required(
            CONF_THRESHOLD_EMPTY, default=get(CONF_THRESHOLD_EMPTY, DEFAULT_THRESHOLD_EMPTY)
        ): _percent_selector(),
        vol.Required(
            CONF_THRESHOLD_RESET_FULL,
            default=get(CONF_THRESHOLD_RESET_FULL, DEFAULT_THRESHOLD_RESET_FULL),
        ): _percent_selector(),
        vol.Required(
            CONF_THRESHOLD_RESET_EMPTY,
            default=get(CONF_THRESHOLD_RESET_EMPTY, DEFAULT_THRESHOLD_RESET_EMPTY),
        ): _percent_selector(),
        vol.Required(
            CONF_INTERMEDIATE_STEPS,
            default=get(CONF_INTERMEDIATE_STEPS, DEFAULT_INTERMEDIATE_STEPS),
        ): selector.TextSelector(),
        vol.Required(
            CONF_MIN_INTERVAL_FULL,
            default=get(CONF_MIN_INTERVAL_FULL, DEFAULT_MIN_INTERVAL_MINUTES),
        ): _minutes_selector(),
        vol.Required(
            CONF_MIN_INTERVAL_EMPTY,
            default=get(CONF_MIN_INTERVAL_EMPTY, DEFAULT_MIN_INTERVAL_MINUTES),
        ): _minutes_selector(),
        vol.Required(
            CONF_MIN_INTERVAL_INTERMEDIATE,
            default=get(CONF_MIN_INTERVAL_INTERMEDIATE, DEFAULT_MIN_INTERVAL_MINUTES),
        ): _minutes_selector(),
    }


def schedule_schema(get: Any) -> dict:
    """Night/quiet window and summary fields with defaults from the getter."""
    return {
        # Night mode
        vol.Optional(
            CONF_NIGHT_MODE_ENABLED,
            default=get(CONF_NIGHT_MODE_ENABLED, DEFAULT_NIGHT_MODE_ENABLED),
        ): selector.BooleanSelector(),
        vol.Required(
            CONF_NIGHT_START, default=get(CONF_NIGHT_START, DEFAULT_NIGHT_START)
        ): selector.TimeSelector(),
        vol.Required(
            CONF_NIGHT_END, default=get(CONF_NIGHT_END, DEFAULT_NIGHT_END)
        ): selector.TimeSelector(),
        vol.Optional(
            CONF_NIGHT_SUPPRESS_FULL,
            default=get(CONF_NIGHT_SUPPRESS_FULL, DEFAULT_NIGHT_SUPPRESS_FULL),
        ): selector.BooleanSelector(),
        vol.Optional(
            CONF_NIGHT_SUPPRESS_INTERMEDIATE,
            default=get(CONF_NIGHT_SUPPRESS_INTERMEDIATE, DEFAULT_NIGHT_SUPPRESS_INTERMEDIATE),
        ): selector.BooleanSelector(),
        vol.Optional(
            CONF_IGNORE_EMPTY_AT_NIGHT,
            default=get(CONF_IGNORE_EMPTY_AT_NIGHT, DEFAULT_IGNORE_EMPTY_AT_NIGHT),
        ): selector.BooleanSelector(),
        # Quiet mode
        vol.Optional(
            CONF_QUIET_MODE_ENABLED,
            default=get(CONF_QUIET_MODE_ENABLED, DEFAULT_QUIET_MODE_ENABLED),
        ): selector.BooleanSelector(),
        vol.Required(
            CONF_QUIET_START, default=get(CONF_QUIET_START, DEFAULT_QUIET_START)
        ): selector.TimeSelector(),
        vol.Required(
            CONF_QUIET_END, default=get(CONF_QUIET_END, DEFAULT_QUIET_END)
        ): selector.TimeSelector(),
        # Summaries
        vol.Optional(
            CONF_DAILY_SUMMARY_ENABLED,
            default=get(CONF_DAILY_SUMMARY_ENABLED, DEFAULT_DAILY_SUMMARY_ENABLED),
        ): selector.BooleanSelector(),
        vol.Required(
            CONF_DAILY_SUMMARY_TIME,
            default=get(CONF_DAILY_SUMMARY_TIME, DEFAULT_DAILY_SUMMARY_TIME),
        ): selector.TimeSelector(),
        vol.Required(
            CONF_DAILY_RESET_TIME,
            default=get(CONF_DAILY_RESET_TIME, DEFAULT_DAILY_RESET_TIME),
        ): selector.TimeSelector(),
        vol.Optional(
            CONF_WEEKLY_SUMMARY_ENABLED,
            default=get(CONF_WEEKLY_SUMMARY_ENABLED, DEFAULT_WEEKLY_SUMMARY_ENABLED),
        ): selector.BooleanSelector(),
        vol.Required(
            CONF_WEEKLY_WEEKDAY,
            default=str(get(CONF_WEEKLY_WEEKDAY, DEFAULT_WEEKLY_WEEKDAY)),
        ): selector.SelectSelector(
            selector.SelectSelectorConfig(
                options=WEEKDAY_OPTIONS,
                mode=selector.SelectSelectorMode.DROPDOWN,
            )
        ),
        vol.Required(
            CONF_WEEKLY_TIME, default=get(CONF_WEEKLY_TIME, DEFAULT_WEEKLY_TIME)
        ): selector.TimeSelector(),
        vol.Optional(
            CONF_MONTHLY_SUMMARY_ENABLED,
            default=get(CONF_MONTHLY_SUMMARY_ENABLED, DEFAULT_MONTHLY_SUMMARY_ENABLED),
        ): selector.BooleanSelector(),
        vol.Required(
            CONF_MONTHLY_DAY, default=get(CONF_MONTHLY_DAY, DEFAULT_MONTHLY_DAY)
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(
                min=0,
                max=31,
                step=1,
                mode=selector.NumberSelectorMode.BOX,
            )
        ),
        vol.Required(
            CONF_MONTHLY_TIME, default=get(CONF_MONTHLY_TIME, DEFAULT_MONTHLY_TIME)
        ): selector.TimeSelector(),
    }


def notifications_schema(get: Any, notify_services: list[dict[str, str]]) -> dict:
    """Delivery and message tip fields with defaults from the getter."""
    schema_dict: dict = {}

    if notify_services:
        schema_dict[vol.Optional(
            CONF_NOTIFY_SERVICE, default=get(CONF_NOTIFY_SERVICE, "")
        )] = selector.SelectSelector(
            selector.SelectSelectorConfig(
                options=notify_services,
                mode=selector.SelectSelectorMode.DROPDOWN,
                custom_value=True,
            )
        )
    else:
        schema_dict[vol.Optional(
            CONF_NOTIFY_SERVICE, default=get(CONF_NOTIFY_SERVICE, "")
        )] = selector.TextSelector(
            selector.TextSelectorConfig(type=selector.TextSelectorType.TEXT)
        )

    schema_dict[vol.Optional(
        CONF_RECIPIENTS, default=get(CONF_RECIPIENTS, "")
    )] = selector.TextSelector()
    schema_dict[vol.Required(
        CONF_HIGH_PRODUCTION_W, default=get(CONF_HIGH_PRODUCTION_W, DEFAULT_HIGH_PRODUCTION_W)
    )] = _watts_selector()
    schema_dict[vol.Required(
        CONF_HIGH_CONSUMPTION_W,
        default=get(CONF_HIGH_CONSUMPTION_W, DEFAULT_HIGH_CONSUMPTION_W),
    )] = _watts_selector()

    return schema_dict


def _defaults(key: str, default: Any) -> Any:
    return default


class ConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for PV Notifications."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the config flow."""
        self.core_info: dict[str, Any] = {}
        self.sensor_info: dict[str, Any] = {}
        self.threshold_info: dict[str, Any] = {}
        self.schedule_info: dict[str, Any] = {}

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Step 1: Battery SOC sensor and capacity."""
        errors: dict[str, str] = {}

        if user_input is not None:
            if self.hass.states.get(user_input[CONF_BATTERY_SOC_SENSOR]) is None:
                errors[CONF_BATTERY_SOC_SENSOR] = "entity_not_found"

            if not errors:
                await self.async_set_unique_id(user_input[CONF_BATTERY_SOC_SENSOR])
                self._abort_if_unique_id_configured()
                self.core_info = user_input
                return await self.async_step_sensors()

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_BATTERY_SOC_SENSOR): selector.EntitySelector(
                        selector.EntitySelectorConfig(domain="sensor")
                    ),
                    vol.Required(
                        CONF_BATTERY_CAPACITY_WH, default=DEFAULT_BATTERY_CAPACITY_WH
                    ): _capacity_selector(),
                }
            ),
            errors=errors,
        )

    async def async_step_sensors(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Step 2: Optional telemetry used in messages and summaries."""
        errors: dict[str, str] = {}

        if user_input is not None:
            for key, entity_id in user_input.items():
                if entity_id and self.hass.states.get(entity_id) is None:
                    errors[key] = "entity_not_found"

            if not errors:
                self.sensor_info = user_input
                return await self.async_step_thresholds()

        return self.async_show_form(
            step_id="sensors",
            data_schema=vol.Schema(
                {
                    vol.Optional(key): selector.EntitySelector(
                        selector.EntitySelectorConfig(domain="sensor")
                    )
                    for key in OPTIONAL_SENSOR_KEYS
                }
            ),
            errors=errors,
        )

    async def async_step_thresholds(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Step 3: Thresholds, intermediate steps and throttling."""
        errors: dict[str, str] = {}

        if user_input is not None:
            errors = validate_thresholds(user_input)
            if not errors:
                self.threshold_info = user_input
                return await self.async_step_schedule()

        return self.async_show_form(
            step_id="thresholds",
            data_schema=vol.Schema(thresholds_schema(_defaults)),
            errors=errors,
        )

    async def async_step_schedule(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Step 4: Night/quiet windows and summary schedule."""
        errors: dict[str, str] = {}

        if user_input is not None:
            errors = validate_windows(user_input)
            if not errors:
                self.schedule_info = user_input
                return await self.async_step_notifications()

        return self.async_show_form(
            step_id="schedule",
            data_schema=vol.Schema(schedule_schema(_defaults)),
            errors=errors,
        )

    async def async_step_notifications(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Step 5: Notify service and recipients."""
        errors: dict[str, str] = {}

        if user_input is not None:
            errors = validate_notify_service(user_input)
            if not errors:
                data = {
                    **self.core_info,
                    **self.sensor_info,
                    **self.threshold_info,
                    **self.schedule_info,
                    **user_input,
                }
                return self.async_create_entry(title=DEFAULT_NAME, data=data)

        return self.async_show_form(
            step_id="notifications",
            data_schema=vol.Schema(
                notifications_schema(_defaults, notify_service_options(self.hass))
            ),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> config_entries.OptionsFlow:
        """Create the options flow."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options flow for PV Notifications."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        """Initialize options flow."""
        self._config_entry = config_entry

    def _get_value(self, key: str, default: Any) -> Any:
        entry = self._config_entry
        return entry.options.get(key, entry.data.get(key, default))

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Every setting except the sensors on one page."""
        errors: dict[str, str] = {}

        if user_input is not None:
            errors = {
                **validate_thresholds(user_input),
                **validate_windows(user_input),
                **validate_notify_service(user_input),
            }
            if not errors:
                return self.async_create_entry(title="", data=user_input)

        schema_dict = {
            vol.Required(
                CONF_BATTERY_CAPACITY_WH,
                default=self._get_value(CONF_BATTERY_CAPACITY_WH, DEFAULT_BATTERY_CAPACITY_WH),
            ): _capacity_selector(),
            **thresholds_schema(self._get_value),
            **schedule_schema(self._get_value),
            **notifications_schema(self._get_value, notify_service_options(self.hass)),
        }

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(schema_dict),
            errors=errors,
        )
