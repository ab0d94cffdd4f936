"""
Device location capabilities
Permission and position interfaces the location stage depends on
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LocationError(Exception):
    """Base exception for location errors."""


class PermissionDeniedError(LocationError):
    """Raised when the user denied location permission."""


class PositionTimeoutError(LocationError):
    """Raised when no position fix arrived within the timeout."""


class PositionUnavailableError(LocationError):
    """Raised when the platform could not provide a position."""


class PermissionState(str, Enum):
    """Location permission reported by the device."""
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"


@dataclass(frozen=True)
class Coordinates:
    """Position fix in decimal degrees."""
    lat: float
    lng: float
    accuracy_m: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "accuracy_m": self.accuracy_m,
        }


class PermissionCapability(ABC):
    """Reports the device's location permission."""

    @abstractmethod
    async def check_location_permission(self) -> PermissionState:
        """Get the current permission state."""


class PositionCapability(ABC):
    """
    Provides the device position.

    Implementations enforce the timeout themselves and raise
    PositionTimeoutError when it expires.
    """

    @abstractmethod
    async def get_current_position(
        self,
        high_accuracy: bool,
        timeout_ms: int
    ) -> Coordinates:
        """Get a position fix."""


class ReportedLocation(PermissionCapability, PositionCapability):
    """
    Location as reported by a client device.

    Used when permission and fix are obtained on the phone and sent along
    with the photo.
    """

    def __init__(
        self,
        permission: PermissionState = PermissionState.GRANTED,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        accuracy_m: Optional[float] = None
    ):
        self.permission = PermissionState(permission)
        self.latitude = latitude
        self.longitude = longitude
        self.accuracy_m = accuracy_m

    async def check_location_permission(self) -> PermissionState:
        return self.permission

    async def get_current_position(
        self,
        high_accuracy: bool,
        timeout_ms: int
    ) -> Coordinates:
        if self.latitude is None or self.longitude is None:
            raise PositionUnavailableError("Device did not report a position")

        return Coordinates(lat=self.latitude, lng=self.longitude, accuracy_m=self.accuracy_m)
