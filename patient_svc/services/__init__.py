"""
Service layer for business logic.

This module contains all business logic and orchestration services.
"""
from services.patient_service import PatientService
from services.history_service import HistoryService

__all__ = [
    "PatientService",
    "HistoryService",
]
