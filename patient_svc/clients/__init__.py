"""
HTTP clients for talking to the Patient Service API.
"""
from clients.patient_api_client import PatientAPIClient, get_patient_api_client

__all__ = ["PatientAPIClient", "get_patient_api_client"]
