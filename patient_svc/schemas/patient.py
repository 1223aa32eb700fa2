"""
Pydantic schemas for patient-related API operations.

Wire keys are camelCase (bloodPressure, lastVisit, ...); Python attributes are
snake_case and mapped through an alias generator.

Vitals are passed through untyped: format, type and range checks belong to
core.vitals so that every failure reports the offending field and rule the
same way, whichever route it came through.
"""
from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class VitalsFields(CamelModel):
    """The four vitals fields shared by patients and history entries."""

    blood_pressure: str = Field(
        ...,
        description="Blood pressure as 'systolic/diastolic'",
        examples=["120/80"]
    )
    respiratory_rate: Any = Field(
        ...,
        description="Breaths per minute",
        examples=[16]
    )
    oxygen_level: Any = Field(
        ...,
        description="Oxygen saturation in percent",
        examples=[98]
    )
    heartbeat_rate: Any = Field(
        ...,
        description="Heartbeats per minute",
        examples=[72]
    )


class PatientCreate(VitalsFields):
    """Schema for creating a new patient.

    The health status is computed by the service from the vitals; any
    healthStatus sent by the client is ignored.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Patient full name",
        examples=["John Doe"]
    )
    dob: date = Field(..., description="Date of birth (YYYY-MM-DD)", examples=["1990-01-15"])
    last_visit: Optional[datetime] = Field(
        None,
        description="Last visit timestamp (ISO 8601). Defaults to now.",
        examples=["2025-01-01T10:00:00Z"]
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "John Doe",
                "dob": "1990-01-15",
                "lastVisit": "2025-01-01T10:00:00Z",
                "bloodPressure": "120/80",
                "respiratoryRate": 16,
                "oxygenLevel": 98,
                "heartbeatRate": 72
            }
        }
    )


class PatientUpdate(PatientCreate):
    """Schema for replacing a patient's editable fields.

    History is never touched by an update. When ``version`` is given the
    write only succeeds if the stored record still has that version.
    """

    version: Optional[int] = Field(
        None,
        ge=1,
        description="Expected current version for a conditional update",
        examples=[3]
    )


class HistoryEntryResponse(CamelModel):
    """Schema for a single history entry."""

    date: str = Field(..., description="ISO 8601 UTC timestamp of the reading", examples=["2025-01-01T10:00:00Z"])
    blood_pressure: str = Field(..., examples=["120/80"])
    respiratory_rate: int = Field(..., examples=[16])
    oxygen_level: int = Field(..., examples=[98])
    heartbeat_rate: int = Field(..., examples=[72])
    health_status: str = Field(..., examples=["Stable"])


class PatientResponse(CamelModel):
    """Schema for patient response.

    Returns the full patient document including its history.
    """

    id: str = Field(..., description="Opaque patient identifier", examples=["3f2b8c1e9a7d4e5f8a6b7c8d9e0f1a2b"])
    name: str = Field(..., examples=["John Doe"])
    dob: str = Field(..., description="Date of birth (YYYY-MM-DD)", examples=["1990-01-15"])
    age: int = Field(..., description="Age in whole years, computed on read", examples=[35])
    health_status: str = Field(..., examples=["Stable"])
    last_visit: str = Field(..., description="ISO 8601 UTC timestamp", examples=["2025-01-01T10:00:00Z"])
    blood_pressure: str = Field(..., examples=["120/80"])
    respiratory_rate: int = Field(..., examples=[16])
    oxygen_level: int = Field(..., examples=[98])
    heartbeat_rate: int = Field(..., examples=[72])
    history: List[HistoryEntryResponse] = Field(default_factory=list)
    version: int = Field(..., description="Incremented on every write", examples=[1])
