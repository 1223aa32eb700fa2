"""
Pydantic schemas for API request/response validation.

This module contains all Pydantic models used at API boundaries.
"""
from schemas.patient import (
    VitalsFields,
    PatientCreate,
    PatientUpdate,
    PatientResponse,
    HistoryEntryResponse,
)
from schemas.history import HistoryEntryCreate

__all__ = [
    # Patient schemas
    "VitalsFields",
    "PatientCreate",
    "PatientUpdate",
    "PatientResponse",
    # History schemas
    "HistoryEntryCreate",
    "HistoryEntryResponse",
]
