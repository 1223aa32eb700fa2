"""
Domain models for the patient service.
"""
from models.patient import HistoryEntry, Patient

__all__ = ["HistoryEntry", "Patient"]
