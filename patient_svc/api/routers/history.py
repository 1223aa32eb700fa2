"""
History router - append-only vitals history endpoints.

Architecture:
    HTTP Request → Router (this file) → HistoryService → PatientRepository → Database
"""
import logging
from fastapi import APIRouter, Depends
from typing import List

from schemas import HistoryEntryCreate, HistoryEntryResponse, PatientResponse
from services import HistoryService
from core.dependencies import get_history_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/patient",
    tags=["History"],
)


@router.patch(
    "/{patient_id}/history",
    response_model=PatientResponse,
    summary="Append a history entry",
    description="Append a vitals reading to a patient's history. The entry's health status "
                "is computed from the reading. Earlier entries are never modified."
)
async def add_history(
    patient_id: str,
    entry: HistoryEntryCreate,
    history_service: HistoryService = Depends(get_history_service)
):
    """
    Append a history entry.

    - **date**: when the reading was taken (defaults to now, must not be in the future)
    - **bloodPressure**, **respiratoryRate**, **oxygenLevel**, **heartbeatRate**: the reading

    Raises:
    - 404 Not Found: unknown patient id (nothing is written)
    - 409 Conflict: concurrent writers kept winning the version race
    - 422 Unprocessable Entity: invalid reading
    """
    return history_service.append_entry(patient_id, entry)


@router.get(
    "/{patient_id}/history",
    response_model=List[HistoryEntryResponse],
    summary="List history entries",
    description="Retrieve a patient's history in the order it was recorded."
)
async def get_history(
    patient_id: str,
    history_service: HistoryService = Depends(get_history_service)
):
    return history_service.get_history(patient_id)
