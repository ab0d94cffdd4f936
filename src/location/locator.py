"""
Location stage
Acquires the device position behind the permission check
"""

import logging
from typing import Optional

from src.core.config import settings
from src.core.geo_utils import is_valid_coordinate
from src.location.capabilities import (
    Coordinates,
    PermissionCapability,
    PermissionDeniedError,
    PermissionState,
    PositionCapability,
    PositionUnavailableError,
)

logger = logging.getLogger(__name__)


class LocationStage:
    """
    Gets a coordinate pair for the report.

    The permission capability is always asked first; the position
    capability is never called once permission is denied.
    """

    def __init__(
        self,
        permission: PermissionCapability,
        position: PositionCapability,
        high_accuracy: Optional[bool] = None,
        timeout_ms: Optional[int] = None
    ):
        """
        Initialize location stage.

        Args:
            permission: Device permission capability
            position: Device position capability
            high_accuracy: Request a GPS-quality fix
            timeout_ms: Acquisition timeout passed to the capability
        """
        self.permission = permission
        self.position = position
        self.high_accuracy = settings.gps_high_accuracy if high_accuracy is None else high_accuracy
        self.timeout_ms = settings.gps_timeout_ms if timeout_ms is None else timeout_ms

    async def check_permission(self) -> PermissionState:
        """Get the location permission state."""
        state = PermissionState(await self.permission.check_location_permission())
        logger.info(f"Location permission: {state.value}")
        return state

    async def acquire(self) -> Coordinates:
        """
        Get the current position.

        Raises:
            PositionTimeoutError: No fix within timeout_ms
            PositionUnavailableError: Platform error or invalid fix
        """
        coords = await self.position.get_current_position(
            high_accuracy=self.high_accuracy,
            timeout_ms=self.timeout_ms,
        )

        if not is_valid_coordinate(coords.lat, coords.lng):
            raise PositionUnavailableError(f"Invalid position fix: ({coords.lat}, {coords.lng})")

        logger.info(f"Position acquired: ({coords.lat}, {coords.lng})")
        return coords

    async def locate(self) -> Coordinates:
        """
        Check permission, then acquire the position.

        A "prompt" permission proceeds and lets the platform ask the user.

        Raises:
            PermissionDeniedError: Permission is denied
        """
        if await self.check_permission() == PermissionState.DENIED:
            raise PermissionDeniedError("Location permission denied")
        return await self.acquire()
