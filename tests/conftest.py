"""
Pytest configuration and fixtures
"""
import pytest
import sys
from pathlib import Path

import httpx

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.crowdsource.capture import ImageHandle
from src.crowdsource.classifier import Classifier, CategoryResult, get_category
from src.location.capabilities import (
    Coordinates,
    PermissionCapability,
    PermissionState,
    PositionCapability,
)
from src.location.geocoder import ReverseGeocoder
from src.location.locator import LocationStage
from src.pipeline.orchestrator import PipelineOrchestrator


SAIGON_LAT = 10.77296
SAIGON_LNG = 106.70030
SAIGON_DISPLAY_NAME = "123 Nguyen Hue Street, District 1, Ho Chi Minh City, Vietnam"


class FixedClassifier(Classifier):
    """Classifier returning a fixed category, or raising a fixed error."""

    def __init__(self, category_id="trash", confidence=0.91, error=None, events=None):
        self.category_id = category_id
        self.confidence = confidence
        self.error = error
        self.events = events if events is not None else []
        self.calls = []

    async def classify(self, image):
        self.calls.append(image)
        self.events.append("classify")
        if self.error:
            raise self.error
        category = get_category(self.category_id)
        return CategoryResult(id=category.id, label=category.label, confidence=self.confidence)


class FakeDevice(PermissionCapability, PositionCapability):
    """Device with a scripted permission state and position fix."""

    def __init__(
        self,
        permission=PermissionState.GRANTED,
        coords=Coordinates(lat=SAIGON_LAT, lng=SAIGON_LNG),
        error=None,
        events=None
    ):
        self.permission = permission
        self.coords = coords
        self.error = error
        self.events = events if events is not None else []
        self.position_calls = []

    async def check_location_permission(self):
        self.events.append("permission")
        return self.permission

    async def get_current_position(self, high_accuracy, timeout_ms):
        self.events.append("position")
        self.position_calls.append((high_accuracy, timeout_ms))
        if self.error:
            raise self.error
        return self.coords


def nominatim_transport(display_name=SAIGON_DISPLAY_NAME, status_code=200, requests=None, events=None):
    """Mock transport answering /reverse like Nominatim."""

    def handler(request):
        if requests is not None:
            requests.append(request)
        if events is not None:
            events.append("geocode")

        payload = {"place_id": 1, "lat": str(SAIGON_LAT), "lon": str(SAIGON_LNG)}
        if display_name is not None:
            payload["display_name"] = display_name

        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


@pytest.fixture
def image():
    """Captured photo handle."""
    return ImageHandle(ref="memory://test-photo", size_bytes=1024)


@pytest.fixture
def make_geocoder():
    """Factory for geocoders backed by a mock transport."""

    def factory(transport=None, timeout_seconds=1.0):
        client = httpx.AsyncClient(transport=transport or nominatim_transport())
        return ReverseGeocoder(client=client, timeout_seconds=timeout_seconds)

    return factory


@pytest.fixture
def make_orchestrator(make_geocoder):
    """Factory for orchestrators wired with fakes and no upload delay."""

    def factory(classifier=None, device=None, geocoder=None, **kwargs):
        device = device or FakeDevice()
        return PipelineOrchestrator(
            classifier=classifier or FixedClassifier(),
            location=LocationStage(permission=device, position=device),
            geocoder=geocoder or make_geocoder(),
            upload_delay=kwargs.pop("upload_delay", 0),
            **kwargs
        )

    return factory
