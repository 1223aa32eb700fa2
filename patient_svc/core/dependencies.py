"""
FastAPI Dependency Injection configuration for Patient Service API.

Architecture Flow:
    API Layer (Routers)
         ↓ Depends()
    Service Layer (PatientService, HistoryService)
         ↓ Injected
    Repository Layer (PatientRepository)
         ↓ Injected
    Database (SQLite Connection)

Usage in Routers:
    from core.dependencies import get_history_service

    @router.patch("/{patient_id}/history")
    async def add_history(
        patient_id: str,
        entry: HistoryEntryCreate,
        history_service: HistoryService = Depends(get_history_service)
    ):
        return history_service.append_entry(patient_id, entry)

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_database] = lambda: test_database
"""
import logging
from typing import Optional

from core.config import settings

logger = logging.getLogger(__name__)


# =============================================================================
# DATABASE DEPENDENCY
# =============================================================================

# Lazy import to avoid circular dependencies
_database_instance: Optional["Database"] = None


def get_database() -> "Database":
    """
    Get the database instance (created on first use, then shared).

    Returns:
        Database: The configured database instance.
    """
    global _database_instance

    if _database_instance is None:
        from repositories.base import Database

        logger.info(f"Initializing database: {settings.database_path}")
        _database_instance = Database(
            db_path=settings.database_path,
            busy_timeout=settings.patient_svc_db_busy_timeout
        )

    return _database_instance


def reset_database() -> None:
    """
    Reset the database instance (for testing only).
    """
    global _database_instance
    _database_instance = None


# =============================================================================
# REPOSITORY DEPENDENCIES
# =============================================================================

def get_patient_repository() -> "PatientRepository":
    """
    Get a PatientRepository instance with database injected.

    Returns:
        PatientRepository: The patient document store.
    """
    from repositories import PatientRepository

    return PatientRepository(db=get_database())


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

def get_patient_service() -> "PatientService":
    """
    Get a PatientService instance with repository injected.

    Returns:
        PatientService: Service for patient CRUD operations.
    """
    from services import PatientService

    return PatientService(patient_repository=get_patient_repository())


def get_history_service() -> "HistoryService":
    """
    Get a HistoryService instance configured from settings.

    Returns:
        HistoryService: Service for appending to and reading patient history.
    """
    from services import HistoryService

    return HistoryService(
        patient_repository=get_patient_repository(),
        sync_status_on_append=settings.patient_svc_sync_status_on_append,
        max_attempts=settings.patient_svc_append_max_retries,
    )
