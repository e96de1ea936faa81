DOMAIN = "geosentinel"
VERSION = "1.2.0"

STORAGE_VERSION = 1

# Travel modes ("tournées")
MODE_ON_FOOT = "pieds"
MODE_BICYCLE = "velo"
MODE_VEHICLE = "voiture"
TOURNEE_TYPES = [MODE_ON_FOOT, MODE_BICYCLE, MODE_VEHICLE]

MODE_LABELS = {
    MODE_ON_FOOT: "On foot",
    MODE_BICYCLE: "Bicycle",
    MODE_VEHICLE: "Vehicle",
}

# Config entry keys
CONF_ENTRY_NAME = "entry_name"
CONF_PRIMARY_URL = "primary_url"
CONF_FALLBACK_URL = "fallback_url"
CONF_EMAIL = "email"
CONF_PASSWORD = "password"
CONF_TRACKED_ENTITY = "tracked_entity_id"
CONF_NOTIFY_SERVICE = "notify_service"
CONF_TOURNEE_TYPE = "tournee_type"
CONF_MAX_SESSION_MINUTES = "max_session_minutes"
CONF_SESSION_WARNING_MINUTES = "session_warning_minutes"
CONF_ACCESS_TOKEN = "access_token"
CONF_REFRESH_TOKEN = "refresh_token"

# Durable store keys
KEY_TOURNEE_TYPE = "tournee_type"
KEY_POSITION_DELAY_SECONDS = "position_test_delay_seconds"
KEY_API_CALL_DELAY_MINUTES = "api_call_delay_minutes"
KEY_RISK_LOAD_ZONE_KM = "risk_load_zone_km"
KEY_ALERT_RADIUS_METERS = "alert_radius_meters"
KEY_TRACKING_START_TIME = "tracking_start_time"
KEY_LAST_TASK_RUN = "last_task_run"
KEY_SESSION_WARNING_SENT = "session_warning_sent"
KEY_LAST_KNOWN_COMMUNE = "last_known_commune"
KEY_NOTIFY_COMMUNE_CHANGE = "notify_commune_change"
KEY_ACCESS_TOKEN = "access_token"
KEY_REFRESH_TOKEN = "refresh_token"
KEY_ACTIVE_API_URL = "active_api_url"

# Keys removed when tracking stops or the session cutoff fires
MODE_KEYS = [
    KEY_TOURNEE_TYPE,
    KEY_POSITION_DELAY_SECONDS,
    KEY_API_CALL_DELAY_MINUTES,
    KEY_RISK_LOAD_ZONE_KM,
    KEY_ALERT_RADIUS_METERS,
]
SESSION_KEYS = [
    KEY_TRACKING_START_TIME,
    KEY_LAST_TASK_RUN,
    KEY_SESSION_WARNING_SENT,
]

# Fallback parameters per travel mode, used when the settings endpoint is unreachable.
# (api_call_delay_minutes, alert_radius_meters, risk_load_zone_km, position_test_delay_seconds)
FALLBACK_MODE_SETTINGS: dict[str, tuple[int, int, int, int]] = {
    MODE_ON_FOOT: (5, 60, 5, 30),
    MODE_BICYCLE: (3, 100, 10, 20),
    MODE_VEHICLE: (2, 250, 10, 10),
}
# Used when a mode is persisted but unknown to the fallback table
DEFAULT_MODE_SETTINGS: tuple[int, int, int, int] = (3, 100, 3, 30)

# Notification dedup / throttling (milliseconds)
NOTIFICATION_COOLDOWN_MS = 5 * 60 * 1000
EXPECTED_TASK_INTERVAL_MS = 45 * 1000
SLOWDOWN_NOTIFICATION_COOLDOWN_MS = 5 * 60 * 1000

# Session lifetime (minutes)
DEFAULT_MAX_SESSION_MINUTES = 12 * 60
DEFAULT_SESSION_WARNING_MINUTES = 6 * 60

# Position acquisition
POSITION_TIMEOUT = 20          # seconds
POSITION_DESIRED_ACCURACY = 100  # metres
POSITION_MAX_AGE = 120         # seconds, tracker entities report less often than a raw GPS

# HTTP
API_TIMEOUT = 30               # seconds
AUTH_REFRESH_TIMEOUT = 10      # seconds
HEALTH_PROBE_TIMEOUT = 4       # seconds
GEORISQUES_TIMEOUT = 10        # seconds
GEORISQUES_URL = "https://georisques.gouv.fr/api/v1/gaspar/risques"
GEORISQUES_RADIUS = 20         # metres

EARTH_RADIUS_KM = 6371.0

# Notifications
NOTIFICATION_CHANNEL = "risk-alerts-final"
IMPORTANCE_HIGH = "high"
