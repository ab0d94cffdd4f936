"""
Urban Feedback - Core Utilities
Central configuration, constants, and geospatial helpers.
"""

from src.core.config import settings
from src.core.constants import (
    INCIDENT_CATEGORIES,
    DEFAULT_CATEGORY_ID,
    LOCATION_UNDETERMINED,
    STAGE_LABELS,
)
from src.core.geo_utils import (
    is_valid_coordinate,
    format_coordinates,
    shorten_address,
)

__all__ = [
    "settings",
    "INCIDENT_CATEGORIES",
    "DEFAULT_CATEGORY_ID",
    "LOCATION_UNDETERMINED",
    "STAGE_LABELS",
    "is_valid_coordinate",
    "format_coordinates",
    "shorten_address",
]
