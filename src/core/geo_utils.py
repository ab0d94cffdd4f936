"""
Urban Feedback - Geospatial Utilities
Coordinate validation and address formatting.
"""

import math

# Valid coordinate ranges in decimal degrees
LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)


def is_valid_coordinate(lat: float, lng: float) -> bool:
    """Check that a coordinate pair is finite and within WGS84 ranges."""
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        return False

    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False

    return (
        LATITUDE_RANGE[0] <= lat <= LATITUDE_RANGE[1] and
        LONGITUDE_RANGE[0] <= lng <= LONGITUDE_RANGE[1]
    )


def format_coordinates(lat: float, lng: float, precision: int = 5) -> str:
    """
    Format a coordinate pair as a fixed-precision string.

    Args:
        lat: Latitude in decimal degrees
        lng: Longitude in decimal degrees
        precision: Decimal places for each value

    Returns:
        String like "10.77296, 106.70030"
    """
    return f"{lat:.{precision}f}, {lng:.{precision}f}"


def shorten_address(display_name: str, segments: int = 3) -> str:
    """
    Keep the first comma-separated segments of an address.

    Nominatim returns the full hierarchy ("street, district, city, country");
    the street, district and city are enough to place a report.

    Args:
        display_name: Comma-delimited address
        segments: Number of leading segments to keep

    Returns:
        Shortened address, empty when the input has no content
    """
    parts = [part.strip() for part in display_name.split(",")]
    parts = [part for part in parts if part]
    return ", ".join(parts[:segments])
