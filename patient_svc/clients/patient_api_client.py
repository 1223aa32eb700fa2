"""
HTTP client for Patient Service API.

Provides the calls the mobile client makes (list, detail, add, edit, delete,
add history) as async methods, and maps failed responses back onto the
service's exception classes:

    404 → PatientNotFoundError
    409 → ConcurrentUpdateError
    422 → VitalsValidationError
    anything else, or no response at all → TransportError
"""
import httpx
import logging
from datetime import date, datetime
from typing import Optional, List, Dict, Any, Union

from core.config import PATIENT_SVC_API_URL, CLIENT_TIMEOUT
from core.datetime_utils import format_iso
from core.exceptions import (
    ConcurrentUpdateError,
    PatientNotFoundError,
    TransportError,
    VitalsValidationError,
)

logger = logging.getLogger(__name__)

PATIENTS_ENDPOINT = "/api/patient"


class PatientAPIClient:
    """Client for Patient Service REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url or PATIENT_SVC_API_URL
        if not self.base_url:
            raise ValueError("PATIENT_SVC_API_URL must be set in config")

        self.base_url = self.base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else CLIENT_TIMEOUT
        self._transport = transport

    async def _request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """
        Make HTTP request to API.

        Returns:
            The decoded JSON body, or None for 204 responses.
        """
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                if response.status_code == 204:
                    return None
                return response.json()
        except httpx.HTTPStatusError as e:
            raise self._map_error(e.response) from e
        except httpx.RequestError as e:
            error_msg = f"Request error: {e}"
            logger.error(error_msg)
            raise TransportError(detail=error_msg) from e

    @staticmethod
    def _map_error(response: httpx.Response) -> Exception:
        """Translate an error response into the matching exception."""
        status_code = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = {}
        detail = body.get("detail") if isinstance(body, dict) else None
        context = (body.get("context") or {}) if isinstance(body, dict) else {}

        logger.error(f"API error {status_code}: {response.text}")

        if status_code == 404:
            return PatientNotFoundError(patient_id=context.get("patient_id"))
        if status_code == 409:
            return ConcurrentUpdateError(
                patient_id=context.get("patient_id"),
                expected_version=context.get("expected_version"),
            )
        if status_code == 422:
            if "field" in context:
                return VitalsValidationError(field=context["field"], rule=context.get("rule", ""))
            # Request-model errors from FastAPI: a list of {loc, msg}
            if isinstance(detail, list) and detail:
                first = detail[0]
                field = ".".join(str(part) for part in first.get("loc", [])[1:]) or "body"
                return VitalsValidationError(field=field, rule=first.get("msg", "invalid"))
        return TransportError(
            detail=f"API error {status_code}: {detail if detail is not None else response.text}",
            status_code=status_code,
        )

    @staticmethod
    def _vitals_payload(
        blood_pressure: str,
        respiratory_rate: Union[int, str],
        oxygen_level: Union[int, str],
        heartbeat_rate: Union[int, str]
    ) -> Dict[str, Any]:
        return {
            "bloodPressure": blood_pressure,
            "respiratoryRate": respiratory_rate,
            "oxygenLevel": oxygen_level,
            "heartbeatRate": heartbeat_rate,
        }

    # Patient methods
    async def add_patient(
        self,
        name: str,
        dob: date,
        blood_pressure: str,
        respiratory_rate: Union[int, str],
        oxygen_level: Union[int, str],
        heartbeat_rate: Union[int, str],
        last_visit: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Add a new patient.

        Returns:
            Dict with the created patient, including its computed healthStatus.

        Raises:
            VitalsValidationError: If the vitals are rejected
            TransportError: If the request fails
        """
        payload = {
            "name": name,
            "dob": dob.isoformat(),
            **self._vitals_payload(blood_pressure, respiratory_rate, oxygen_level, heartbeat_rate),
        }
        if last_visit is not None:
            payload["lastVisit"] = format_iso(last_visit)

        return await self._request("POST", PATIENTS_ENDPOINT, json=payload)

    async def get_patients(self) -> List[Dict[str, Any]]:
        """
        Get all patients.

        Raises:
            TransportError: If the request fails
        """
        return await self._request("GET", PATIENTS_ENDPOINT)

    async def get_patient(self, patient_id: str) -> Dict[str, Any]:
        """
        Get a single patient with its history.

        Raises:
            PatientNotFoundError: If the id is unknown
            TransportError: If the request fails
        """
        return await self._request("GET", f"{PATIENTS_ENDPOINT}/{patient_id}")

    async def update_patient(
        self,
        patient_id: str,
        name: str,
        dob: date,
        blood_pressure: str,
        respiratory_rate: Union[int, str],
        oxygen_level: Union[int, str],
        heartbeat_rate: Union[int, str],
        last_visit: Optional[datetime] = None,
        version: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Replace a patient's editable fields.

        Args:
            version: If given, the update only applies to that version of the record.

        Raises:
            PatientNotFoundError: If the id is unknown
            ConcurrentUpdateError: If ``version`` is stale
            VitalsValidationError: If the vitals are rejected
            TransportError: If the request fails
        """
        payload = {
            "name": name,
            "dob": dob.isoformat(),
            **self._vitals_payload(blood_pressure, respiratory_rate, oxygen_level, heartbeat_rate),
        }
        if last_visit is not None:
            payload["lastVisit"] = format_iso(last_visit)
        if version is not None:
            payload["version"] = version

        return await self._request("PUT", f"{PATIENTS_ENDPOINT}/{patient_id}", json=payload)

    async def delete_patient(self, patient_id: str) -> None:
        """
        Delete a patient.

        Raises:
            PatientNotFoundError: If the id is unknown
            TransportError: If the request fails
        """
        await self._request("DELETE", f"{PATIENTS_ENDPOINT}/{patient_id}")

    # History methods
    async def add_history(
        self,
        patient_id: str,
        blood_pressure: str,
        respiratory_rate: Union[int, str],
        oxygen_level: Union[int, str],
        heartbeat_rate: Union[int, str],
        taken_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Append a vitals reading to a patient's history.

        Returns:
            Dict with the updated patient.

        Raises:
            PatientNotFoundError: If the id is unknown
            VitalsValidationError: If the reading is rejected
            TransportError: If the request fails
        """
        payload = self._vitals_payload(blood_pressure, respiratory_rate, oxygen_level, heartbeat_rate)
        if taken_at is not None:
            payload["date"] = format_iso(taken_at)

        return await self._request(
            "PATCH",
            f"{PATIENTS_ENDPOINT}/{patient_id}/history",
            json=payload
        )

    async def get_history(self, patient_id: str) -> List[Dict[str, Any]]:
        """
        Get a patient's history in the order it was recorded.

        Raises:
            PatientNotFoundError: If the id is unknown
            TransportError: If the request fails
        """
        return await self._request("GET", f"{PATIENTS_ENDPOINT}/{patient_id}/history")


# Global client instance
_client_instance: Optional[PatientAPIClient] = None


def get_patient_api_client() -> PatientAPIClient:
    """Get or create the global API client instance."""
    global _client_instance
    if _client_instance is None:
        _client_instance = PatientAPIClient()
    return _client_instance
