"""Tests for FastAPI availability server."""
import pytest
from fastapi.testclient import TestClient

from fixtures import build_demo_store
from scheduling import InMemoryScheduleStore, ScheduleVersionConflictError, StoreUnavailableError
from server import app
from tools import set_store

from conftest import MONDAY, SUNDAY


class DownStore(InMemoryScheduleStore):
    def get_provider(self, provider_id):
        raise StoreUnavailableError("profiles unavailable")

    def list_providers(self, roles=("doctor", "staff")):
        raise StoreUnavailableError("profiles unavailable")


class RacingStore(InMemoryScheduleStore):
    def save_schedule(self, provider_id, role, schedule, unavailable_dates, expected_version=None):
        raise ScheduleVersionConflictError(provider_id, expected_version, expected_version + 1)


@pytest.fixture
def client():
    """Create test client backed by the demo store."""
    set_store(build_demo_store())
    yield TestClient(app)
    set_store(None)


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_returns_healthy(self, client):
        """Test health endpoint returns healthy status."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestValidateEndpoint:
    """Tests for appointment validation."""

    def test_valid_request(self, client):
        """Test a free slot validates."""
        response = client.post(
            "/appointments/validate",
            json={"provider_id": "doc-001", "branch": "cabugao", "date": MONDAY, "time": "11:00"},
        )

        assert response.status_code == 200
        assert response.json()["valid"] is True

    def test_rejection_reason(self, client):
        """Test a day off is rejected with a reason."""
        response = client.post(
            "/appointments/validate",
            json={"provider_id": "doc-001", "branch": "cabugao", "date": SUNDAY, "time": "09:00"},
        )

        body = response.json()
        assert body["valid"] is False
        assert body["reason"] == "Provider does not work on sundays at cabugao branch"

    def test_unknown_provider_404(self, client):
        """Test an unknown provider is a 404."""
        response = client.post(
            "/appointments/validate",
            json={"provider_id": "doc-999", "branch": "cabugao", "date": MONDAY, "time": "09:00"},
        )

        assert response.status_code == 404

    def test_impossible_date_422(self, client):
        """Test a well-formed but impossible date is a 422."""
        response = client.post(
            "/appointments/validate",
            json={"provider_id": "doc-001", "branch": "cabugao", "date": "2025-02-30", "time": "09:00"},
        )

        assert response.status_code == 422


class TestBranchEndpoints:
    """Tests for branch-wide queries."""

    def test_available_providers(self, client):
        """Test providers free at a time."""
        response = client.get(
            "/branches/cabugao/available-providers", params={"date": MONDAY, "time": "11:00"}
        )

        assert response.status_code == 200
        assert [p["id"] for p in response.json()["providers"]] == ["doc-001", "doc-002", "staff-001"]

    def test_bad_time_query(self, client):
        """Test a malformed time query parameter."""
        response = client.get(
            "/branches/cabugao/available-providers", params={"date": MONDAY, "time": "9"}
        )

        assert response.status_code == 422

    def test_unknown_branch_422(self, client):
        """Test a branch the clinic does not have is rejected."""
        response = client.get("/branches/vigan/open-slots", params={"date": MONDAY})

        assert response.status_code == 422

    def test_open_slots(self, client):
        """Test open start times."""
        response = client.get("/branches/cabugao/open-slots", params={"date": MONDAY})

        assert response.json()["slots"][0]["time"] == "08:00"

    def test_next_slot(self, client):
        """Test the next open slot."""
        response = client.get("/branches/sanjuan/next-slot", params={"start_date": "2025-09-16"})

        assert response.json()["date"] == "2025-09-18"


class TestProviderEndpoints:
    """Tests for provider schedule endpoints."""

    def test_calendar_put_and_delete(self, client):
        """Test saving and removing a date override."""
        response = client.put(
            f"/providers/doc-001/calendar/{MONDAY}/cabugao",
            json={"role": "doctor", "time_slots": [{"startTime": "13:00", "endTime": "15:00"}]},
        )
        assert response.status_code == 200
        assert response.json()["has_override"] is True

        response = client.delete(f"/providers/doc-001/calendar/{MONDAY}/cabugao", params={"role": "doctor"})
        assert response.json()["has_override"] is False

    def test_mark_unavailable(self, client):
        """Test marking a date unavailable."""
        response = client.post(f"/providers/doc-001/calendar/{MONDAY}/cabugao/unavailable", json={"role": "doctor"})

        assert response.json()["override"]["unavailable"] is True

    def test_unavailable_dates(self, client):
        """Test adding and removing an unavailable-dates entry."""
        response = client.post(
            f"/providers/doc-001/unavailable-dates/{MONDAY}/cabugao",
            json={"role": "doctor", "time_slots": ["11:00"]},
        )
        entry_id = response.json()["entry_id"]

        response = client.delete(f"/providers/doc-001/unavailable-dates/{entry_id}", params={"role": "doctor"})
        assert response.json() == {"removed": True}

    def test_time_slots(self, client):
        """Test resolved slots for a provider."""
        response = client.get("/providers/doc-001/time-slots", params={"branch": "cabugao", "date": MONDAY})

        assert response.json()["slots"][0]["startTime"] == "08:00"

    def test_schedule_summary_and_update(self, client):
        """Test reading and replacing weekly hours."""
        response = client.get("/providers/doc-001/schedule")
        assert response.json()["working_hours"]["cabugao"]["monday"] == "08:00 - 12:00"

        response = client.put(
            "/providers/doc-001/schedule",
            json={"role": "doctor", "weekly": {"cabugao": {"monday": {"enabled": False}}}},
        )
        assert response.status_code == 200
        assert "monday" not in response.json()["working_hours"]["cabugao"]


class TestErrorMapping:
    """Tests for store failures surfacing as HTTP errors."""

    def test_store_unavailable_503(self, client):
        """Test a failing store is a 503."""
        set_store(DownStore())

        response = client.get(
            "/branches/cabugao/available-providers", params={"date": MONDAY, "time": "11:00"}
        )

        assert response.status_code == 503

    def test_version_conflict_409(self, client):
        """Test a concurrent edit is a 409."""
        from fixtures import APPOINTMENTS, PROVIDER_PROFILES

        set_store(RacingStore(profiles=PROVIDER_PROFILES, appointments=APPOINTMENTS))

        response = client.post(f"/providers/doc-001/calendar/{MONDAY}/cabugao/unavailable", json={"role": "doctor"})

        assert response.status_code == 409
