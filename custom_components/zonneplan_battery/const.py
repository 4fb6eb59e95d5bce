"""Constants for the Zonneplan Battery integration."""

DOMAIN = "zonneplan_battery"

# Configuration Keys
CONF_POLL_INTERVAL = "poll_interval"
CONF_TRADING_MODE = "trading_mode"
CONF_TOTAL_EARNED_OFFSET = "total_earned_offset"
CONF_AUTO_SEND = "auto_send_measurements"
CONF_REPORT_ZERO_RESULTS = "report_zero_trading_results"
CONF_FILE_LOGGING = "file_logging"

# Scheduled sending
CONF_SEND_ENABLED = "measurements_send_enabled"
CONF_SEND_INTERVAL = "measurements_send_interval"
CONF_SEND_START_MINUTE = "measurements_send_start_minute"

# Defaults
DEFAULT_NAME = "Zonneplan Battery"
DEFAULT_POLL_INTERVAL = 300  # seconds
DEFAULT_TRADING_MODE = "manual"
DEFAULT_TOTAL_EARNED_OFFSET = 0.0
DEFAULT_AUTO_SEND = False
DEFAULT_REPORT_ZERO_RESULTS = False
DEFAULT_FILE_LOGGING = False
DEFAULT_SEND_ENABLED = False
DEFAULT_SEND_INTERVAL = 15  # minutes
DEFAULT_SEND_START_MINUTE = 0

# Bounds
MIN_POLL_INTERVAL = 60
MAX_POLL_INTERVAL = 3600
MIN_SEND_INTERVAL = 5
MAX_SEND_INTERVAL = 1440

# Countdown refresh cadence
COUNTDOWN_UPDATE_SECONDS = 10

# Restored metrics older than this are only a fallback
METRICS_STALE_HOURS = 24

# Onbalansmarkt API
API_URL_LIVE = "https://onbalansmarkt.com/api/live"
API_URL_ME = "https://onbalansmarkt.com/api/me"
API_TIMEOUT_SECONDS = 30

# Storage
STORAGE_VERSION = 1
STORAGE_KEY_METRICS = "last_received_metrics"

# Services
SERVICE_RECEIVE_METRICS = "receive_metrics"
SERVICE_SEND_LIVE_MEASUREMENT = "send_live_measurement"
SERVICE_SIMULATE_LIVE_MEASUREMENT = "simulate_live_measurement"
SERVICE_CALCULATE_CURVE_VALUE = "calculate_curve_value"

# Service / event fields
ATTR_CONFIG_ENTRY_ID = "config_entry_id"
ATTR_DAILY_EARNED = "daily_earned"
ATTR_TOTAL_EARNED = "total_earned"
ATTR_DAILY_CHARGED = "daily_charged"
ATTR_DAILY_DISCHARGED = "daily_discharged"
ATTR_BATTERY_PERCENTAGE = "battery_percentage"
ATTR_CYCLE_COUNT = "cycle_count"
ATTR_LOAD_BALANCING_ACTIVE = "load_balancing_active"
ATTR_TIMESTAMP = "timestamp"
ATTR_INPUT_VALUE = "input_value"
ATTR_CURVE = "curve"
ATTR_RESULT_VALUE = "result_value"

# Events fired on the Home Assistant bus
EVENT_METRICS_UPDATED = f"{DOMAIN}_metrics_updated"
EVENT_MEASUREMENT_SENT = f"{DOMAIN}_measurement_sent"

# Published display keys
DISPLAY_BATTERY = "battery"
DISPLAY_DAILY_EARNED = "daily_earned"
DISPLAY_TOTAL_EARNED = "total_earned"
DISPLAY_DAILY_CHARGED = "daily_charged"
DISPLAY_DAILY_DISCHARGED = "daily_discharged"
DISPLAY_REPORTED_CHARGED = "reported_charged"
DISPLAY_REPORTED_DISCHARGED = "reported_discharged"
DISPLAY_CYCLE_COUNT = "cycle_count"
DISPLAY_LOAD_BALANCING = "load_balancing"
DISPLAY_LAST_UPDATE = "last_update"
DISPLAY_OVERALL_RANK = "overall_rank"
DISPLAY_PROVIDER_RANK = "provider_rank"
DISPLAY_NEXT_SEND = "next_send"


def signal_update(entry_id: str) -> str:
    """Dispatcher signal used to refresh the entities of one entry."""
    return f"{DOMAIN}_{entry_id}_update"
