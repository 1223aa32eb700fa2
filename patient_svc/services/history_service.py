"""
Service layer for patient history operations.

A patient's history is an append-only list of timestamped vitals snapshots,
each tagged with the health status computed from that snapshot at insertion
time. Entries are never edited, reordered or removed.

Architecture:
    API Layer (routers) → HistoryService → PatientRepository → Database

Appending rewrites the whole patient document. The rewrite is conditional on
the version that was read, and the read-modify-write is retried when another
writer got there first, so concurrent appends never drop each other.
"""
import logging
import sqlite3
from typing import List, Optional

from repositories import PatientRepository
from models import HistoryEntry, Patient
from schemas import HistoryEntryCreate, HistoryEntryResponse, PatientResponse
from services.patient_service import to_response
from core.vitals import validate_vitals
from core.datetime_utils import to_utc, utc_now
from core.exceptions import (
    ConcurrentUpdateError,
    DatabaseError,
    PatientNotFoundError,
    VitalsValidationError,
)
from core.metrics import (
    APPEND_ABANDONED,
    APPEND_APPENDED,
    APPEND_RETRIED,
    ServiceMetrics,
    get_metrics,
)

logger = logging.getLogger(__name__)


class HistoryService:
    """
    Service layer for the history ledger.

    Args:
        patient_repository: Document store holding the patient records.
        sync_status_on_append: When True an append also copies the entry's
            vitals, status and date onto the patient's current snapshot.
        max_attempts: Read-modify-write attempts before giving up on a
            version conflict.
        metrics: Where append outcomes and entry statuses are counted.
    """

    def __init__(
        self,
        patient_repository: PatientRepository,
        sync_status_on_append: bool = False,
        max_attempts: int = 3,
        metrics: Optional[ServiceMetrics] = None
    ):
        self._repo = patient_repository
        self._sync_status = sync_status_on_append
        self._max_attempts = max_attempts
        self._metrics = metrics or get_metrics()

    def append_entry(self, patient_id: str, entry: HistoryEntryCreate) -> PatientResponse:
        """
        Append a vitals reading to a patient's history.

        Validation happens before the store is touched, so a rejected entry
        never costs a read.

        Args:
            patient_id: Id of the patient.
            entry: The reading to append; its status is computed here.

        Returns:
            PatientResponse: The updated patient.

        Raises:
            VitalsValidationError: If the reading is invalid or dated in the future.
            PatientNotFoundError: If no patient with this id exists.
            ConcurrentUpdateError: If every attempt lost a version race.
            DatabaseError: If the store fails.
        """
        reading = validate_vitals(
            entry.blood_pressure, entry.respiratory_rate, entry.oxygen_level, entry.heartbeat_rate
        )

        now = utc_now()
        taken_at = to_utc(entry.date) if entry.date else now
        if taken_at > now:
            raise VitalsValidationError(field="date", rule="must not be in the future")

        new_entry = HistoryEntry(
            date=taken_at,
            blood_pressure=str(reading.blood_pressure),
            respiratory_rate=reading.respiratory_rate,
            oxygen_level=reading.oxygen_level,
            heartbeat_rate=reading.heartbeat_rate,
            health_status=reading.classify().value,
        )

        logger.info(
            f"Appending history entry for patient: {patient_id}",
            extra={"health_status": new_entry.health_status}
        )

        for attempt in range(1, self._max_attempts + 1):
            try:
                stored = self._try_append(patient_id, new_entry)
            except ConcurrentUpdateError:
                logger.warning(
                    "History append lost a version race",
                    extra={"patient_id": patient_id, "attempt": attempt}
                )
                if attempt == self._max_attempts:
                    self._metrics.record_append(APPEND_ABANDONED)
                    raise
                self._metrics.record_append(APPEND_RETRIED)
                continue
            except sqlite3.Error as e:
                logger.error(f"Database error appending history: {e}", exc_info=True)
                raise DatabaseError(operation="append_history", message=str(e)) from e

            patient = Patient.from_document(stored)
            self._metrics.record_append(APPEND_APPENDED)
            self._metrics.record_classification(new_entry.health_status)
            logger.info(
                f"History entry appended for patient: {patient_id}",
                extra={"history_length": len(patient.history), "version": patient.version}
            )
            return to_response(patient)

    def _try_append(self, patient_id: str, entry: HistoryEntry) -> dict:
        document = self._repo.get(patient_id)
        if document is None:
            logger.warning(f"Patient not found: {patient_id}")
            raise PatientNotFoundError(patient_id=patient_id)

        patient = Patient.from_document(document).with_entry(entry)
        if self._sync_status:
            patient.health_status = entry.health_status
            patient.last_visit = entry.date
            patient.blood_pressure = entry.blood_pressure
            patient.respiratory_rate = entry.respiratory_rate
            patient.oxygen_level = entry.oxygen_level
            patient.heartbeat_rate = entry.heartbeat_rate

        stored = self._repo.update(patient_id, patient.to_document(), expected_version=patient.version)
        if stored is None:
            # Deleted between the read and the write
            raise PatientNotFoundError(patient_id=patient_id)
        return stored

    def get_history(self, patient_id: str) -> List[HistoryEntryResponse]:
        """
        Get a patient's history in insertion order.

        Raises:
            PatientNotFoundError: If no patient with this id exists.
        """
        try:
            document = self._repo.get(patient_id)
        except sqlite3.Error as e:
            logger.error(f"Database error reading history: {e}", exc_info=True)
            raise DatabaseError(operation="get_history", message=str(e)) from e

        if document is None:
            raise PatientNotFoundError(patient_id=patient_id)

        return [
            HistoryEntryResponse.model_validate(entry.to_dict())
            for entry in Patient.from_document(document).history
        ]
