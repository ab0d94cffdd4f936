"""
Urban Feedback - Constants and Reference Data
Static values used throughout the application.
"""

from typing import Dict, List, Tuple

# =============================================================================
# INCIDENT CATEGORIES
# =============================================================================

# Closed set of incident categories the classifier can return (id, label)
INCIDENT_CATEGORIES: List[Tuple[str, str]] = [
    ("pothole", "Road damage (pothole)"),
    ("trash", "Illegal dumping"),
    ("light", "Street lighting fault"),
    ("tree", "Fallen tree"),
]

CATEGORY_LABELS: Dict[str, str] = dict(INCIDENT_CATEGORIES)

# Category used when the pipeline degrades
DEFAULT_CATEGORY_ID = "pothole"

# Simulated classifier confidence bounds
SIMULATED_CONFIDENCE_RANGE: Tuple[float, float] = (0.85, 0.95)

# =============================================================================
# PIPELINE TEXT
# =============================================================================

LOCATION_UNDETERMINED = "location undetermined"

STAGE_LABELS: Dict[str, str] = {
    "uploading": "Uploading photo...",
    "analyzing": "Analyzing incident...",
    "locating": "Acquiring GPS position...",
    "resolving_address": "Verifying address...",
}

NOTICE_PERMISSION_DENIED = "Please grant location permission to use this feature."
NOTICE_LOCATION_FAILED = "Unable to get your location. Please check GPS."
NOTICE_SUBMITTED = "Report submitted. Thank you for helping build a better city."

# =============================================================================
# REPORT STATUS
# =============================================================================

STATUS_LABELS: Dict[str, str] = {
    "pending": "Received",
    "processing": "In progress",
    "completed": "Resolved",
}
