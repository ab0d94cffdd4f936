"""
Tests for API endpoints
"""
import httpx
import pytest
from fastapi.testclient import TestClient

import sys
sys.path.insert(0, '.')

from conftest import FixedClassifier, nominatim_transport
from src.api import main
from src.core.config import settings
from src.crowdsource.capture import InMemoryCapture
from src.crowdsource.report_store import ReportStore
from src.location.geocoder import ReverseGeocoder

PHOTO = ("pothole.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")
SAIGON = {"latitude": "10.77296", "longitude": "106.70030"}


@pytest.fixture
def client(monkeypatch):
    """API client with fresh services and no simulated delays."""
    monkeypatch.setattr(settings, "upload_delay_seconds", 0)
    monkeypatch.setattr(main, "_report_store", ReportStore())
    monkeypatch.setattr(main, "_photos", InMemoryCapture())
    monkeypatch.setattr(main, "_classifier", FixedClassifier("trash", 0.91))
    monkeypatch.setattr(
        main,
        "_geocoder",
        ReverseGeocoder(client=httpx.AsyncClient(transport=nominatim_transport())),
    )
    return TestClient(main.app)


def submit_photo(client, **data):
    return client.post("/api/v1/reports/with-photo", files={"photo": PHOTO}, data=data)


class TestSystemEndpoints:
    """Test suite for system endpoints."""

    def test_health(self, client):
        """Test health endpoint structure."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["report_count"] == 0

    def test_lifespan_closes_geocoder(self, monkeypatch):
        """Test the geocoder is closed when the app shuts down."""
        closed = []

        async def aclose():
            closed.append(True)

        geocoder = ReverseGeocoder()
        monkeypatch.setattr(geocoder, "aclose", aclose)
        monkeypatch.setattr(main, "_geocoder", geocoder)

        with TestClient(main.app) as client:
            assert client.get("/health").status_code == 200
            assert closed == []

        assert closed == [True]


class TestReportEndpoints:
    """Test suite for report endpoints."""

    def test_create_report(self, client):
        """Test a photo with a position fix becomes a pending report."""
        response = submit_photo(client, description="Deep pothole", **SAIGON)

        assert response.status_code == 200
        body = response.json()
        assert body["pipeline_result"] == "success"
        assert body["notice"] is None
        report = body["report"]
        assert report["status"] == "pending"
        assert report["category"] == {"id": "trash", "label": "Illegal dumping", "confidence": 0.91}
        assert report["address"] == "123 Nguyen Hue Street, District 1, Ho Chi Minh City"
        assert report["description"] == "Deep pothole"

    def test_create_report_without_fix(self, client):
        """Test a missing position degrades but still creates a report."""
        response = submit_photo(client)

        assert response.status_code == 200
        body = response.json()
        assert body["pipeline_result"] == "degraded"
        assert body["notice"]
        assert body["report"]["category"]["id"] == "pothole"
        assert body["report"]["address"] == "location undetermined"

    def test_create_report_permission_denied(self, client):
        """Test denied permission is rejected and nothing is stored."""
        response = submit_photo(client, permission="denied", **SAIGON)

        assert response.status_code == 403
        assert "permission" in response.json()["detail"]
        assert client.get("/api/v1/reports").json()["count"] == 0

    def test_rejected_submission_discards_photo(self, client):
        """Test a photo without a report is not kept."""
        response = submit_photo(client, permission="denied", **SAIGON)

        assert response.status_code == 403
        assert len(main._photos) == 0

    def test_accepted_submission_keeps_photo(self, client):
        """Test a submitted report keeps its photo."""
        submit_photo(client, permission="denied", **SAIGON)
        submit_photo(client, **SAIGON)

        assert len(main._photos) == 1

    def test_create_report_empty_photo(self, client):
        """Test an empty upload is rejected."""
        response = client.post(
            "/api/v1/reports/with-photo",
            files={"photo": ("empty.jpg", b"", "image/jpeg")},
        )

        assert response.status_code == 400

    def test_create_report_invalid_latitude(self, client):
        """Test out-of-range coordinates fail validation."""
        response = submit_photo(client, latitude="95", longitude="0")

        assert response.status_code == 422

    def test_list_reports_most_recent_first(self, client):
        """Test the list is ordered newest first."""
        first = submit_photo(client, description="first", **SAIGON).json()["report"]
        second = submit_photo(client, description="second", **SAIGON).json()["report"]

        body = client.get("/api/v1/reports").json()

        assert body["count"] == 2
        assert [r["id"] for r in body["reports"]] == [second["id"], first["id"]]

    def test_list_reports_status_filter(self, client):
        """Test filtering by status."""
        report = submit_photo(client, **SAIGON).json()["report"]
        submit_photo(client, **SAIGON)
        client.put(f"/api/v1/reports/{report['id']}/status", params={"status": "processing"})

        body = client.get("/api/v1/reports", params={"status": "processing"}).json()

        assert body["count"] == 1
        assert body["reports"][0]["id"] == report["id"]

    def test_get_report(self, client):
        """Test fetching a single report."""
        report = submit_photo(client, **SAIGON).json()["report"]

        response = client.get(f"/api/v1/reports/{report['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == report["id"]

    def test_get_report_not_found(self, client):
        """Test unknown report id."""
        assert client.get("/api/v1/reports/missing").status_code == 404

    def test_get_report_photo(self, client):
        """Test the uploaded photo is served back from the capture store."""
        report = submit_photo(client, **SAIGON).json()["report"]

        response = client.get(f"/api/v1/reports/{report['id']}/photo")

        assert response.status_code == 200
        assert response.content == PHOTO[1]
        assert response.headers["content-type"] == "image/jpeg"

    def test_get_report_photo_content_type(self, client):
        """Test the photo is served with its uploaded content type."""
        png = ("sign.png", b"\x89PNG\r\n\x1a\nfake", "image/png")
        response = client.post("/api/v1/reports/with-photo", files={"photo": png}, data=SAIGON)
        report = response.json()["report"]

        photo = client.get(f"/api/v1/reports/{report['id']}/photo")

        assert photo.headers["content-type"] == "image/png"

    def test_update_status(self, client):
        """Test status advances and never regresses."""
        report = submit_photo(client, **SAIGON).json()["report"]
        url = f"/api/v1/reports/{report['id']}/status"

        advanced = client.put(url, params={"status": "completed"})
        regressed = client.put(url, params={"status": "pending"})

        assert advanced.status_code == 200
        assert advanced.json()["status"] == "completed"
        assert advanced.json()["status_label"] == "Resolved"
        assert regressed.status_code == 409

    def test_update_status_invalid(self, client):
        """Test unknown status values and report ids."""
        report = submit_photo(client, **SAIGON).json()["report"]

        invalid = client.put(f"/api/v1/reports/{report['id']}/status", params={"status": "archived"})
        missing = client.put("/api/v1/reports/missing/status", params={"status": "processing"})

        assert invalid.status_code == 400
        assert missing.status_code == 404

    def test_stats(self, client):
        """Test report statistics."""
        submit_photo(client, **SAIGON)
        submit_photo(client)

        body = client.get("/api/v1/reports/stats/summary").json()

        assert body["total_reports"] == 2
        assert body["by_status"] == {"pending": 2}
        assert body["by_category"] == {"trash": 1, "pothole": 1}
