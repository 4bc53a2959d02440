"""Domain errors and failure typing."""


class InspectionMapError(Exception):
    """Base class for inspection map failures."""

    error_code = "INSPECTION_MAP_ERROR"


class ConfigError(InspectionMapError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class FetchError(InspectionMapError):
    """Raised when the inspection dataset could not be obtained."""

    error_code = "FETCH_ERROR"


class NetworkError(FetchError):
    """Raised when the request cannot complete or returns an error status."""

    error_code = "NETWORK_ERROR"


class ParseError(FetchError):
    """Raised when the response body is malformed or misses required fields."""

    error_code = "PARSE_ERROR"


class CoordinateParseError(InspectionMapError):
    """Raised for a single record whose coordinates are not numeric."""

    error_code = "COORDINATE_PARSE_ERROR"


class LocationError(InspectionMapError):
    error_code = "LOCATION_ERROR"


class LocationUnavailable(LocationError):
    error_code = "LOCATION_UNAVAILABLE"


class PermissionDenied(LocationError):
    error_code = "PERMISSION_DENIED"
