"""
Patients router - patient CRUD endpoints.

Architecture:
    HTTP Request → Router (this file) → PatientService → PatientRepository → Database

Errors raised by the service (VitalsValidationError, PatientNotFoundError,
ConcurrentUpdateError, DatabaseError) are turned into responses by the
handlers registered in main.py via setup_exception_handlers().
"""
import logging
from fastapi import APIRouter, Depends, Response, status
from typing import List

from schemas import PatientCreate, PatientUpdate, PatientResponse
from services import PatientService
from core.dependencies import get_patient_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/patient",
    tags=["Patients"],
)


@router.post(
    "",
    response_model=PatientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new patient",
    description="Add a new patient. The health status is computed from the submitted vitals."
)
async def create_patient(
    patient: PatientCreate,
    patient_service: PatientService = Depends(get_patient_service)
):
    """
    Create a new patient.

    - **name**, **dob**: identity fields (required)
    - **lastVisit**: defaults to now
    - **bloodPressure**, **respiratoryRate**, **oxygenLevel**, **heartbeatRate**: current vitals

    Raises 422 naming the field and rule if a vital sign is invalid.
    """
    return patient_service.create_patient(patient)


@router.get(
    "",
    response_model=List[PatientResponse],
    summary="List all patients",
    description="Retrieve all patients in creation order."
)
async def list_patients(
    patient_service: PatientService = Depends(get_patient_service)
):
    return patient_service.get_patients()


@router.get(
    "/{patient_id}",
    response_model=PatientResponse,
    summary="Get a patient",
    description="Retrieve a single patient, including its full history."
)
async def get_patient(
    patient_id: str,
    patient_service: PatientService = Depends(get_patient_service)
):
    return patient_service.get_patient(patient_id)


@router.put(
    "/{patient_id}",
    response_model=PatientResponse,
    summary="Update a patient",
    description="Replace a patient's editable fields and recompute its health status. "
                "History is left untouched. Send `version` to make the write conditional."
)
async def update_patient(
    patient_id: str,
    patient: PatientUpdate,
    patient_service: PatientService = Depends(get_patient_service)
):
    """
    Update a patient.

    Raises:
    - 404 Not Found: unknown patient id
    - 409 Conflict: the record changed since `version`
    - 422 Unprocessable Entity: invalid vitals
    """
    return patient_service.update_patient(patient_id, patient)


@router.delete(
    "/{patient_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a patient",
    description="Delete a patient and its history."
)
async def delete_patient(
    patient_id: str,
    patient_service: PatientService = Depends(get_patient_service)
):
    patient_service.delete_patient(patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
