"""
Core module for application configuration, logging, and shared constants.

This module provides:
- Settings: Application configuration via pydantic-settings
- Dependency injection: FastAPI Depends() functions for services and repositories
- Exceptions: Domain-specific exception classes with HTTP status codes
- Vitals: Validation and health-status classification
- Datetime utilities: UTC-first datetime handling
- Metrics: in-process traffic and domain counters
"""
from core.config import settings, Settings

from core.dependencies import (
    get_database,
    get_patient_repository,
    get_patient_service,
    get_history_service,
    reset_database,
)

from core.exceptions import (
    PatientServiceError,
    VitalsValidationError,
    PatientNotFoundError,
    ConcurrentUpdateError,
    DatabaseError,
    TransportError,
    setup_exception_handlers,
)

from core.vitals import (
    StatusLabel,
    BloodPressure,
    VitalsReading,
    parse_blood_pressure,
    validate_vitals,
    classify,
)

from core.metrics import ServiceMetrics, get_metrics

from core.datetime_utils import (
    utc_now,
    to_utc,
    parse_datetime,
    format_iso,
    parse_date,
    format_date,
    calculate_age,
)

__all__ = [
    # Settings
    "settings",
    "Settings",
    # Dependency injection
    "get_database",
    "get_patient_repository",
    "get_patient_service",
    "get_history_service",
    "reset_database",
    # Exceptions
    "PatientServiceError",
    "VitalsValidationError",
    "PatientNotFoundError",
    "ConcurrentUpdateError",
    "DatabaseError",
    "TransportError",
    "setup_exception_handlers",
    # Vitals
    "StatusLabel",
    "BloodPressure",
    "VitalsReading",
    "parse_blood_pressure",
    "validate_vitals",
    "classify",
    # Metrics
    "ServiceMetrics",
    "get_metrics",
    # Datetime utilities
    "utc_now",
    "to_utc",
    "parse_datetime",
    "format_iso",
    "parse_date",
    "format_date",
    "calculate_age",
]
