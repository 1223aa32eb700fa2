"""
Service layer for patient operations.

This service contains business logic for patient management
and orchestrates calls to the document store.

Architecture:
    API Layer (routers) → PatientService → PatientRepository → Database

Dependency Injection:
    PatientService receives its repository via constructor injection.
    Use core.dependencies.get_patient_service() in routers with Depends().
"""
import logging
import sqlite3
from typing import List, Optional

from repositories import PatientRepository
from models import Patient
from schemas import PatientCreate, PatientUpdate, PatientResponse
from core.vitals import validate_vitals
from core.datetime_utils import to_utc, utc_now
from core.exceptions import PatientNotFoundError, DatabaseError
from core.metrics import ServiceMetrics, get_metrics

logger = logging.getLogger(__name__)


def to_response(patient: Patient) -> PatientResponse:
    """Build the API representation of a patient."""
    return PatientResponse.model_validate(patient.to_dict())


class PatientService:
    """
    Service layer for patient operations.

    Validates vitals and computes the health status before anything reaches
    the store. History is never modified here; see HistoryService.
    """

    def __init__(self, patient_repository: PatientRepository, metrics: Optional[ServiceMetrics] = None):
        """
        Initialize the patient service.

        Args:
            patient_repository: PatientRepository instance for data access.
                               Injected via core.dependencies.get_patient_service().
            metrics: Where computed statuses are counted. Defaults to the process-wide instance.
        """
        self._repo = patient_repository
        self._metrics = metrics or get_metrics()

    def create_patient(self, data: PatientCreate) -> PatientResponse:
        """
        Create a new patient.

        Args:
            data: Patient fields as received from the client.

        Returns:
            PatientResponse: The stored patient, version 1, empty history.

        Raises:
            VitalsValidationError: If any vitals field is malformed or out of range.
            DatabaseError: If the store fails.
        """
        reading = validate_vitals(
            data.blood_pressure, data.respiratory_rate, data.oxygen_level, data.heartbeat_rate
        )
        status = reading.classify()

        patient = Patient(
            name=data.name,
            dob=data.dob,
            health_status=status.value,
            last_visit=to_utc(data.last_visit) if data.last_visit else utc_now(),
            blood_pressure=str(reading.blood_pressure),
            respiratory_rate=reading.respiratory_rate,
            oxygen_level=reading.oxygen_level,
            heartbeat_rate=reading.heartbeat_rate,
        )

        logger.info("Adding new patient", extra={"health_status": status.value})
        try:
            patient_id = self._repo.create(patient.to_document())
            stored = self._repo.get(patient_id)
        except sqlite3.Error as e:
            logger.error(f"Database error creating patient: {e}", exc_info=True)
            raise DatabaseError(operation="create_patient", message=str(e)) from e

        self._metrics.record_classification(status)
        logger.info(f"Patient created: {patient_id}")
        return to_response(Patient.from_document(stored))

    def get_patients(self) -> List[PatientResponse]:
        """
        Get all patients.

        Returns:
            List of PatientResponse objects in creation order.
        """
        try:
            documents = self._repo.list()
        except sqlite3.Error as e:
            logger.error(f"Database error listing patients: {e}", exc_info=True)
            raise DatabaseError(operation="list_patients", message=str(e)) from e

        return [to_response(Patient.from_document(doc)) for doc in documents]

    def get_patient(self, patient_id: str) -> PatientResponse:
        """
        Get a patient by id.

        Raises:
            PatientNotFoundError: If no patient with this id exists.
        """
        try:
            document = self._repo.get(patient_id)
        except sqlite3.Error as e:
            logger.error(f"Database error reading patient: {e}", exc_info=True)
            raise DatabaseError(operation="get_patient", message=str(e)) from e

        if document is None:
            raise PatientNotFoundError(patient_id=patient_id)
        return to_response(Patient.from_document(document))

    def update_patient(self, patient_id: str, data: PatientUpdate) -> PatientResponse:
        """
        Replace a patient's editable fields.

        The health status is recomputed from the new vitals; history is
        carried over from the stored record unchanged.

        Raises:
            VitalsValidationError: If any vitals field is malformed or out of range.
            PatientNotFoundError: If no patient with this id exists.
            ConcurrentUpdateError: If ``data.version`` is set and stale.
        """
        reading = validate_vitals(
            data.blood_pressure, data.respiratory_rate, data.oxygen_level, data.heartbeat_rate
        )
        status = reading.classify()

        try:
            document = self._repo.get(patient_id)
            if document is None:
                raise PatientNotFoundError(patient_id=patient_id)

            current = Patient.from_document(document)
            updated = Patient(
                id=current.id,
                version=current.version,
                name=data.name,
                dob=data.dob,
                health_status=status.value,
                last_visit=to_utc(data.last_visit) if data.last_visit else current.last_visit,
                blood_pressure=str(reading.blood_pressure),
                respiratory_rate=reading.respiratory_rate,
                oxygen_level=reading.oxygen_level,
                heartbeat_rate=reading.heartbeat_rate,
                history=current.history,
            )

            # Without an explicit version the write is still conditional on what we just read
            expected_version = data.version if data.version is not None else current.version
            stored = self._repo.update(patient_id, updated.to_document(), expected_version)
        except sqlite3.Error as e:
            logger.error(f"Database error updating patient: {e}", exc_info=True)
            raise DatabaseError(operation="update_patient", message=str(e)) from e

        if stored is None:
            raise PatientNotFoundError(patient_id=patient_id)

        self._metrics.record_classification(status)
        logger.info(
            f"Patient updated: {patient_id}",
            extra={"version": stored["version"], "health_status": status.value}
        )
        return to_response(Patient.from_document(stored))

    def delete_patient(self, patient_id: str) -> None:
        """
        Delete a patient and its history.

        Raises:
            PatientNotFoundError: If no patient with this id exists.
        """
        try:
            deleted = self._repo.delete(patient_id)
        except sqlite3.Error as e:
            logger.error(f"Database error deleting patient: {e}", exc_info=True)
            raise DatabaseError(operation="delete_patient", message=str(e)) from e

        if not deleted:
            raise PatientNotFoundError(patient_id=patient_id)
        logger.info(f"Patient deleted: {patient_id}")
