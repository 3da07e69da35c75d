"""Constants for the PV Notifications integration."""

DOMAIN = "pv_notifications"

# Sensors
CONF_BATTERY_SOC_SENSOR = "battery_soc_sensor"
CONF_BATTERY_CAPACITY_WH = "battery_capacity_wh"
CONF_PRODUCTION_POWER_SENSOR = "production_power_sensor"
CONF_PRODUCTION_ENERGY_SENSOR = "production_energy_sensor"
CONF_CONSUMPTION_POWER_SENSOR = "consumption_power_sensor"
CONF_CONSUMPTION_ENERGY_SENSOR = "consumption_energy_sensor"
CONF_FEED_IN_ENERGY_SENSOR = "feed_in_energy_sensor"
CONF_GRID_POWER_SENSOR = "grid_power_sensor"
CONF_WEATHER_TOMORROW_SENSOR = "weather_tomorrow_sensor"

# Thresholds
CONF_THRESHOLD_FULL = "threshold_full"
CONF_THRESHOLD_EMPTY = "threshold_empty"
CONF_THRESHOLD_RESET_FULL = "threshold_reset_full"
CONF_THRESHOLD_RESET_EMPTY = "threshold_reset_empty"
CONF_INTERMEDIATE_STEPS = "intermediate_steps"
CONF_MIN_INTERVAL_FULL = "min_interval_full"
CONF_MIN_INTERVAL_EMPTY = "min_interval_empty"
CONF_MIN_INTERVAL_INTERMEDIATE = "min_interval_intermediate"

# Night / quiet windows
CONF_NIGHT_MODE_ENABLED = "night_mode_enabled"
CONF_NIGHT_START = "night_start"
CONF_NIGHT_END = "night_end"
CONF_NIGHT_SUPPRESS_FULL = "night_suppress_full"
CONF_NIGHT_SUPPRESS_INTERMEDIATE = "night_suppress_intermediate"
CONF_IGNORE_EMPTY_AT_NIGHT = "ignore_empty_at_night"
CONF_QUIET_MODE_ENABLED = "quiet_mode_enabled"
CONF_QUIET_START = "quiet_start"
CONF_QUIET_END = "quiet_end"

# Summaries
CONF_DAILY_SUMMARY_ENABLED = "daily_summary_enabled"
CONF_DAILY_SUMMARY_TIME = "daily_summary_time"
CONF_DAILY_RESET_TIME = "daily_reset_time"
CONF_WEEKLY_SUMMARY_ENABLED = "weekly_summary_enabled"
CONF_WEEKLY_WEEKDAY = "weekly_weekday"
CONF_WEEKLY_TIME = "weekly_time"
CONF_MONTHLY_SUMMARY_ENABLED = "monthly_summary_enabled"
CONF_MONTHLY_DAY = "monthly_day"
CONF_MONTHLY_TIME = "monthly_time"

# Message tips
CONF_HIGH_PRODUCTION_W = "high_production_w"
CONF_HIGH_CONSUMPTION_W = "high_consumption_w"

# Delivery
CONF_NOTIFY_SERVICE = "notify_service"
CONF_RECIPIENTS = "recipients"

# Defaults
DEFAULT_NAME = "PV Notifications"
DEFAULT_BATTERY_CAPACITY_WH = 10000.0

DEFAULT_THRESHOLD_FULL = 100
DEFAULT_THRESHOLD_EMPTY = 0
DEFAULT_THRESHOLD_RESET_FULL = 95
DEFAULT_THRESHOLD_RESET_EMPTY = 5
DEFAULT_INTERMEDIATE_STEPS = "20,40,60,80"
DEFAULT_MIN_INTERVAL_MINUTES = 10

DEFAULT_NIGHT_MODE_ENABLED = True
DEFAULT_NIGHT_START = "00:00:00"
DEFAULT_NIGHT_END = "08:00:00"
DEFAULT_NIGHT_SUPPRESS_FULL = True
DEFAULT_NIGHT_SUPPRESS_INTERMEDIATE = True
DEFAULT_IGNORE_EMPTY_AT_NIGHT = True
DEFAULT_QUIET_MODE_ENABLED = False
DEFAULT_QUIET_START = "22:00:00"
DEFAULT_QUIET_END = "07:00:00"

DEFAULT_DAILY_SUMMARY_ENABLED = True
DEFAULT_DAILY_SUMMARY_TIME = "20:00:00"
DEFAULT_DAILY_RESET_TIME = "22:00:00"
DEFAULT_WEEKLY_SUMMARY_ENABLED = True
DEFAULT_WEEKLY_WEEKDAY = 6  # Sunday (Monday == 0)
DEFAULT_WEEKLY_TIME = "20:00:00"
DEFAULT_MONTHLY_SUMMARY_ENABLED = False
DEFAULT_MONTHLY_DAY = 1  # 0 == last day of month
DEFAULT_MONTHLY_TIME = "20:00:00"

DEFAULT_HIGH_PRODUCTION_W = 3000.0
DEFAULT_HIGH_CONSUMPTION_W = 2000.0

# Intermediate steps are re-armed once SOC moved this far away
INTERMEDIATE_TOLERANCE = 2

# Storage
STORAGE_KEY = f"{DOMAIN}.statistics"
STORAGE_VERSION = 1

# Dispatcher signal for entity refresh
SIGNAL_UPDATE = f"{DOMAIN}_update"

# Services
SERVICE_SEND_TEST_NOTIFICATION = "send_test_notification"
SERVICE_SEND_DAILY_SUMMARY = "send_daily_summary"
SERVICE_RESET_STATISTICS = "reset_statistics"
