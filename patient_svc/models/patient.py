"""
Domain models for patients and their vitals history.

Patients are stored as JSON documents. These dataclasses convert between the
stored document (camelCase keys, ISO 8601 strings) and typed Python values.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from core.datetime_utils import (
    calculate_age,
    format_date,
    format_iso,
    parse_date,
    parse_datetime,
)


def _as_int(value: Any) -> Any:
    # Older documents carry oxygenLevel and heartbeatRate as strings
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isascii() and stripped.isdigit():
            return int(stripped)
    return value


@dataclass(frozen=True)
class HistoryEntry:
    """An immutable, timestamped vitals snapshot plus its computed status."""

    date: datetime
    blood_pressure: str
    respiratory_rate: int
    oxygen_level: int
    heartbeat_rate: int
    health_status: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to a document fragment."""
        return {
            "date": format_iso(self.date),
            "bloodPressure": self.blood_pressure,
            "respiratoryRate": self.respiratory_rate,
            "oxygenLevel": self.oxygen_level,
            "heartbeatRate": self.heartbeat_rate,
            "healthStatus": self.health_status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            date=parse_datetime(data["date"]),
            blood_pressure=data["bloodPressure"],
            respiratory_rate=_as_int(data["respiratoryRate"]),
            oxygen_level=_as_int(data["oxygenLevel"]),
            heartbeat_rate=_as_int(data["heartbeatRate"]),
            health_status=data["healthStatus"],
        )


@dataclass
class Patient:
    """Model representing a patient record with its history."""

    name: str
    dob: date
    health_status: str
    last_visit: datetime
    blood_pressure: str
    respiratory_rate: int
    oxygen_level: int
    heartbeat_rate: int
    history: List[HistoryEntry] = field(default_factory=list)
    id: Optional[str] = None
    version: int = 0

    @property
    def age(self) -> int:
        return calculate_age(self.dob)

    def with_entry(self, entry: HistoryEntry) -> "Patient":
        """Return a copy with ``entry`` appended; earlier entries are shared, not copied."""
        return replace(self, history=[*self.history, entry])

    def to_document(self) -> Dict[str, Any]:
        """
        Convert patient to the stored document.

        ``id`` and ``version`` are owned by the store and are not part of the body.
        """
        return {
            "name": self.name,
            "dob": format_date(self.dob),
            "healthStatus": self.health_status,
            "lastVisit": format_iso(self.last_visit),
            "bloodPressure": self.blood_pressure,
            "respiratoryRate": self.respiratory_rate,
            "oxygenLevel": self.oxygen_level,
            "heartbeatRate": self.heartbeat_rate,
            "history": [entry.to_dict() for entry in self.history],
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert patient to dictionary for API responses."""
        data = self.to_document()
        data["id"] = self.id
        data["version"] = self.version
        data["age"] = self.age
        return data

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "Patient":
        """
        Create a Patient from a stored document.

        Args:
            data: Document body, with the store's ``id`` and ``version`` merged in.
        """
        return cls(
            id=data.get("id"),
            version=data.get("version", 0),
            name=data["name"],
            dob=parse_date(data["dob"]),
            health_status=data["healthStatus"],
            last_visit=parse_datetime(data["lastVisit"]),
            blood_pressure=data["bloodPressure"],
            respiratory_rate=_as_int(data["respiratoryRate"]),
            oxygen_level=_as_int(data["oxygenLevel"]),
            heartbeat_rate=_as_int(data["heartbeatRate"]),
            history=[HistoryEntry.from_dict(h) for h in data.get("history", [])],
        )
