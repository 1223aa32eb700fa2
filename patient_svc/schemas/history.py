"""
Pydantic schemas for history-related API operations.
"""
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from schemas.patient import VitalsFields


class HistoryEntryCreate(VitalsFields):
    """Schema for appending a vitals reading to a patient's history.

    The health status is computed by the service. The timestamp defaults to
    now and may not lie in the future.
    """

    date: Optional[datetime] = Field(
        None,
        description="When the reading was taken (ISO 8601). Defaults to now.",
        examples=["2025-01-01T10:00:00Z"]
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "date": "2025-01-01T10:00:00Z",
                "bloodPressure": "120/80",
                "respiratoryRate": 18,
                "oxygenLevel": 98,
                "heartbeatRate": 72
            }
        }
    )
