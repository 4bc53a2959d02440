"""Application constants."""

USER_AGENT = "inspection-map/0.1 (+food-inspections; contact: configured-email)"
DEFAULT_BASE_URL = "https://data.cityofchicago.org/"
DEFAULT_RESOURCE = "resource/j8a4-a59k.json"
DEFAULT_RECORD_LIMIT = 100
DEFAULT_EXCLUDED_RISKS = ("Risk 3 (Low)",)
DEFAULT_ZOOM = 10.0
REQUIRED_RECORD_FIELDS = ("risk", "latitude", "longitude")
COMMANDS = ("fetch", "map")
EXIT_SUCCESS = 0
EXIT_LOCATION_FAIL = 10
EXIT_HARD_FAIL = 20
PERMISSION_DENIED_MESSAGE = "Must grant location permission to use this app"
LOCATION_UNAVAILABLE_MESSAGE = "Current location is unavailable"
FETCH_FAILED_MESSAGE = "Request for inspection data failed"
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "event",
    "status",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "endpoint",
    "message",
)
