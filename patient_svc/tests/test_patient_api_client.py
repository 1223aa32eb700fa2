"""
Unit tests for PatientAPIClient.

Request building is checked by mocking ``_request``; error mapping is checked
against an httpx MockTransport so the real response handling runs.
"""
import pytest
import httpx
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

from clients.patient_api_client import PatientAPIClient, PATIENTS_ENDPOINT
from core.exceptions import (
    ConcurrentUpdateError,
    PatientNotFoundError,
    TransportError,
    VitalsValidationError,
)

BASE_URL = "http://patient-svc.test"

TEST_PATIENT_RESPONSE = {
    "id": "abc123",
    "name": "John Doe",
    "dob": "1990-01-15",
    "age": 35,
    "healthStatus": "Stable",
    "lastVisit": "2025-01-01T10:00:00Z",
    "bloodPressure": "120/80",
    "respiratoryRate": 16,
    "oxygenLevel": 98,
    "heartbeatRate": 72,
    "history": [],
    "version": 1,
}


@pytest.fixture
def api_client():
    client = PatientAPIClient(base_url=BASE_URL)
    client._request = AsyncMock(return_value=TEST_PATIENT_RESPONSE)
    return client


def client_with_response(status_code, json_body=None, text=None):
    """Build a client whose transport answers every request the same way."""
    def handler(request: httpx.Request) -> httpx.Response:
        if json_body is not None:
            return httpx.Response(status_code, json=json_body)
        return httpx.Response(status_code, text=text or "")

    return PatientAPIClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))


# =============================================================================
# REQUEST BUILDING
# =============================================================================

def test_base_url_trailing_slash_is_stripped():
    client = PatientAPIClient(base_url=f"{BASE_URL}/")
    assert client.base_url == BASE_URL


@pytest.mark.asyncio
async def test_add_patient(api_client):
    result = await api_client.add_patient(
        name="John Doe",
        dob=date(1990, 1, 15),
        blood_pressure="120/80",
        respiratory_rate=16,
        oxygen_level="98",
        heartbeat_rate=72,
        last_visit=datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc),
    )

    assert result == TEST_PATIENT_RESPONSE
    api_client._request.assert_called_once_with("POST", PATIENTS_ENDPOINT, json={
        "name": "John Doe",
        "dob": "1990-01-15",
        "bloodPressure": "120/80",
        "respiratoryRate": 16,
        "oxygenLevel": "98",
        "heartbeatRate": 72,
        "lastVisit": "2025-01-01T10:00:00Z",
    })


@pytest.mark.asyncio
async def test_add_patient_without_last_visit(api_client):
    await api_client.add_patient("John Doe", date(1990, 1, 15), "120/80", 16, 98, 72)

    payload = api_client._request.call_args[1]["json"]
    assert "lastVisit" not in payload


@pytest.mark.asyncio
async def test_update_patient_sends_version(api_client):
    await api_client.update_patient(
        "abc123", "John Doe", date(1990, 1, 15), "150/80", 16, 98, 72, version=3
    )

    method, endpoint = api_client._request.call_args[0]
    assert method == "PUT"
    assert endpoint == f"{PATIENTS_ENDPOINT}/abc123"
    assert api_client._request.call_args[1]["json"]["version"] == 3


@pytest.mark.asyncio
async def test_get_and_delete_patient(api_client):
    await api_client.get_patient("abc123")
    api_client._request.assert_called_with("GET", f"{PATIENTS_ENDPOINT}/abc123")

    await api_client.delete_patient("abc123")
    api_client._request.assert_called_with("DELETE", f"{PATIENTS_ENDPOINT}/abc123")


@pytest.mark.asyncio
async def test_add_history(api_client):
    await api_client.add_history(
        "abc123", "150/80", 18, 96, 75,
        taken_at=datetime(2025, 2, 1, 9, 0, tzinfo=timezone.utc),
    )

    api_client._request.assert_called_once_with(
        "PATCH",
        f"{PATIENTS_ENDPOINT}/abc123/history",
        json={
            "bloodPressure": "150/80",
            "respiratoryRate": 18,
            "oxygenLevel": 96,
            "heartbeatRate": 75,
            "date": "2025-02-01T09:00:00Z",
        }
    )


# =============================================================================
# RESPONSE HANDLING
# =============================================================================

@pytest.mark.asyncio
async def test_get_patients_success():
    client = client_with_response(200, json_body=[TEST_PATIENT_RESPONSE])

    result = await client.get_patients()

    assert result == [TEST_PATIENT_RESPONSE]


@pytest.mark.asyncio
async def test_delete_returns_none_on_204():
    client = client_with_response(204)

    assert await client.delete_patient("abc123") is None


@pytest.mark.asyncio
async def test_not_found_maps_to_patient_not_found():
    client = client_with_response(404, json_body={
        "detail": "Patient 'abc123' not found",
        "context": {"patient_id": "abc123"},
    })

    with pytest.raises(PatientNotFoundError) as exc_info:
        await client.get_patient("abc123")

    assert exc_info.value.context["patient_id"] == "abc123"


@pytest.mark.asyncio
async def test_conflict_maps_to_concurrent_update():
    client = client_with_response(409, json_body={
        "detail": "Patient 'abc123' was modified by another request",
        "context": {"patient_id": "abc123", "expected_version": 1},
    })

    with pytest.raises(ConcurrentUpdateError) as exc_info:
        await client.update_patient("abc123", "John Doe", date(1990, 1, 15), "120/80", 16, 98, 72, version=1)

    assert exc_info.value.context["expected_version"] == 1


@pytest.mark.asyncio
async def test_vitals_error_maps_field_and_rule():
    client = client_with_response(422, json_body={
        "detail": "bloodPressure.systolic: must be between 70 and 200",
        "context": {"field": "bloodPressure.systolic", "rule": "must be between 70 and 200"},
    })

    with pytest.raises(VitalsValidationError) as exc_info:
        await client.add_history("abc123", "250/80", 16, 98, 72)

    assert exc_info.value.field == "bloodPressure.systolic"
    assert exc_info.value.rule == "must be between 70 and 200"


@pytest.mark.asyncio
async def test_request_model_error_maps_to_validation_error():
    client = client_with_response(422, json_body={
        "detail": [{"loc": ["body", "name"], "msg": "Field required", "type": "missing"}],
    })

    with pytest.raises(VitalsValidationError) as exc_info:
        await client.add_patient("", date(1990, 1, 15), "120/80", 16, 98, 72)

    assert exc_info.value.field == "name"
    assert exc_info.value.rule == "Field required"


@pytest.mark.asyncio
async def test_server_error_maps_to_transport_error():
    client = client_with_response(500, text="boom")

    with pytest.raises(TransportError) as exc_info:
        await client.get_patients()

    assert exc_info.value.status_code == 500
    assert "500" in exc_info.value.detail


@pytest.mark.asyncio
async def test_connection_failure_maps_to_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = PatientAPIClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))

    with pytest.raises(TransportError) as exc_info:
        await client.get_patients()

    assert "Request error" in exc_info.value.detail
