"""Constants for the Hyundai / Kia connected car integration.

This module contains all the constants used throughout the integration,
including configuration keys, polling defaults and trigger names.
"""

from hyundai_kia_connect_api.const import BRANDS, REGIONS

DOMAIN = "hyundai_kia"

CONF_PIN = "pin"
CONF_REGION = "region"
CONF_BRAND = "brand"
CONF_VIN = "vin"

CONF_POLL_INTERVAL = "poll_interval"
CONF_POLL_INTERVAL_FORCED = "poll_interval_forced"
CONF_BATTERY_ALARM_LEVEL = "battery_alarm_level"
CONF_EV_BATTERY_ALARM_LEVEL = "ev_battery_alarm_level"
CONF_ABRP_TOKEN = "abrp_user_token"
CONF_ABRP_API_KEY = "abrp_api_key"

DEFAULT_POLL_INTERVAL = 10  # minutes
DEFAULT_POLL_INTERVAL_FORCED = 0  # minutes, 0 disables forced polling
DEFAULT_BATTERY_ALARM_LEVEL = 70
DEFAULT_EV_BATTERY_ALARM_LEVEL = 20
DEFAULT_TARGET_TEMPERATURE = 22.0

WATCHDOG_BUDGET = 5
ACTIVE_WINDOW = 5 * 60  # keep refreshing 5 minutes after the car was active
COMMAND_SETTLE_DELAY = 5  # seconds between a remote command and the resync poll
RESTART_DELAY = 5 * 60  # seconds to wait before re-initializing a wedged session
LOGIN_TIMEOUT = 15  # seconds
ABRP_MIN_TOKEN_LENGTH = 6
STORE_VERSION = 1
STORE_SAVE_DELAY = 10  # seconds

ABRP_URL = "https://api.iternio.com/1/tlm/send"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/reverse"
USER_AGENT = "HomeAssistant-HyundaiKia/1.0"

ERROR_INVALID_AUTH = "invalid_auth"
ERROR_INVALID_PIN = "invalid_pin"
ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_TIMEOUT = "timeout_error"
ERROR_NO_VEHICLES = "no_vehicles"

EVENT_VEHICLE_TRIGGER = f"{DOMAIN}_event"
ATTR_TRIGGER_TYPE = "type"

# Boolean properties that fire a directional trigger on every transition
TRIGGER_PROPERTIES = ("engine", "charging", "climate_control", "defrost")
TRIGGER_TYPES = tuple(
    f"{prop}_{state}" for prop in TRIGGER_PROPERTIES for state in ("true", "false")
)

REGION_OPTIONS = {str(key): value for key, value in REGIONS.items()}
BRAND_OPTIONS = {str(key): value for key, value in BRANDS.items()}
