"""
Repository for patient document operations.

This is the document store: id-keyed create/get/update/delete/list over JSON
documents. It knows nothing about vitals or history; the service layer owns
the document shape.

Architecture:
    PatientRepository is the data access layer for patients.
    It should be injected via core.dependencies.get_patient_repository().

All SQL is encapsulated in this repository - no SQL in service or API layers.
"""
import json
import logging
import uuid
from typing import Optional, List, Dict, Any

from repositories.base import Database
from core.datetime_utils import utc_now, format_iso
from core.exceptions import ConcurrentUpdateError

logger = logging.getLogger(__name__)

_SELECT_ONE = "SELECT id, document, version FROM patients WHERE id = ?"


class PatientRepository:
    """
    Repository for patient document CRUD operations.

    Documents are returned as dicts with the store-owned ``id`` and
    ``version`` keys merged into the stored body.
    """

    def __init__(self, db: Database):
        """
        Initialize the patient repository.

        Args:
            db: Database instance for data access.
                Injected via core.dependencies.get_patient_repository().
        """
        self._db = db

    @staticmethod
    def _to_document(row: tuple) -> Dict[str, Any]:
        document = json.loads(row[1])
        document["id"] = row[0]
        document["version"] = row[2]
        return document

    @staticmethod
    def _to_body(doc: Dict[str, Any]) -> str:
        body = {k: v for k, v in doc.items() if k not in ("id", "version")}
        return json.dumps(body, ensure_ascii=False)
    def create(self, doc: Dict[str, Any]) -> str:
        """
        Store a new document.

        Args:
            doc: Document body. ``id`` and ``version`` keys, if present, are ignored.

        Returns:
            str: The generated document id.
        """
        doc_id = uuid.uuid4().hex
        now = format_iso(utc_now())

        with self._db.connect() as conn:
            conn.execute(
                """
                INSERT INTO patients (id, document, version, created_at, updated_at)
                VALUES (?, ?, 1, ?, ?)
                """,
                (doc_id, self._to_body(doc), now, now)
            )

        logger.debug("Document created", extra={"patient_id": doc_id})
        return doc_id

    def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a document by id.

        Returns:
            Optional[dict]: The document, or None if not found.
        """
        with self._db.connect() as conn:
            row = conn.execute(_SELECT_ONE, (doc_id,)).fetchone()

        return self._to_document(row) if row else None

    def update(
        self,
        doc_id: str,
        doc: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Replace a document in full and bump its version.

        When ``expected_version`` is given the write only happens if the stored
        version still matches, all within a single statement.

        Returns:
            Optional[dict]: The stored document, or None if the id does not exist.

        Raises:
            ConcurrentUpdateError: If the stored version differs from ``expected_version``.
        """
        sql = "UPDATE patients SET document = ?, version = version + 1, updated_at = ? WHERE id = ?"
        params = [self._to_body(doc), format_iso(utc_now()), doc_id]
        if expected_version is not None:
            sql += " AND version = ?"
            params.append(expected_version)

        with self._db.connect() as conn:
            if conn.execute(sql, params).rowcount == 1:
                return self._to_document(conn.execute(_SELECT_ONE, (doc_id,)).fetchone())

            stored = conn.execute("SELECT version FROM patients WHERE id = ?", (doc_id,)).fetchone()

        if stored is None:
            return None

        logger.info(
            "Conditional write rejected",
            extra={"patient_id": doc_id, "expected_version": expected_version, "stored_version": stored[0]}
        )
        raise ConcurrentUpdateError(patient_id=doc_id, expected_version=expected_version)

    def delete(self, doc_id: str) -> bool:
        """
        Delete a document by id.

        Returns:
            bool: True if a document was deleted, False if the id did not exist.
        """
        with self._db.connect() as conn:
            return conn.execute("DELETE FROM patients WHERE id = ?", (doc_id,)).rowcount > 0

    def list(self) -> List[Dict[str, Any]]:
        """
        Get all documents in insertion order.

        Returns:
            List[dict]: Every stored document.
        """
        with self._db.connect() as conn:
            rows = conn.execute(
                "SELECT id, document, version FROM patients ORDER BY rowid ASC"
            ).fetchall()

        return [self._to_document(row) for row in rows]
