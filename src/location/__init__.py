"""
Urban Feedback - Location Module
Permission-gated positioning and reverse geocoding.
"""

from src.location.capabilities import (
    Coordinates,
    LocationError,
    PermissionCapability,
    PermissionDeniedError,
    PermissionState,
    PositionCapability,
    PositionTimeoutError,
    PositionUnavailableError,
    ReportedLocation,
)
from src.location.locator import LocationStage
from src.location.geocoder import ReverseGeocoder, GeocodeLookupError

__all__ = [
    # Capabilities
    "Coordinates",
    "LocationError",
    "PermissionCapability",
    "PermissionDeniedError",
    "PermissionState",
    "PositionCapability",
    "PositionTimeoutError",
    "PositionUnavailableError",
    "ReportedLocation",
    # Stages
    "LocationStage",
    "ReverseGeocoder",
    "GeocodeLookupError",
]
