"""
Vitals validation and health-status classification.

This module is the single source of truth for:
- The accepted format and range of each vital sign
- The threshold rules that turn a vitals snapshot into a status label

Every code path that writes a health status (patient create, patient update,
history append) goes through validate_vitals() and then classify().

Usage:
    from core.vitals import validate_vitals, classify, StatusLabel

    reading = validate_vitals("120/80", 16, "98", 72)
    status = classify(reading.blood_pressure, reading.respiratory_rate,
                      reading.oxygen_level, reading.heartbeat_rate)
    assert status is StatusLabel.STABLE
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Union

from core.exceptions import VitalsValidationError

logger = logging.getLogger(__name__)


class StatusLabel(str, Enum):
    """Health status derived from a vitals snapshot."""

    STABLE = "Stable"
    AT_RISK = "At Risk"
    CRITICAL = "Critical"


# =============================================================================
# VALID RANGES
# =============================================================================

@dataclass(frozen=True)
class VitalRange:
    """Inclusive range a single vital sign must fall in."""

    field: str
    low: int
    high: int

    def check(self, value: int) -> None:
        if not (self.low <= value <= self.high):
            raise VitalsValidationError(
                field=self.field,
                rule=f"must be between {self.low} and {self.high}",
                value=value,
            )


SYSTOLIC_RANGE = VitalRange("bloodPressure.systolic", 70, 200)
DIASTOLIC_RANGE = VitalRange("bloodPressure.diastolic", 40, 120)
RESPIRATORY_RATE_RANGE = VitalRange("respiratoryRate", 5, 40)
OXYGEN_LEVEL_RANGE = VitalRange("oxygenLevel", 0, 100)
HEARTBEAT_RATE_RANGE = VitalRange("heartbeatRate", 30, 200)

_BLOOD_PRESSURE_PATTERN = re.compile(r"^([0-9]{2,3})/([0-9]{2,3})$")
_INTEGER_PATTERN = re.compile(r"^[0-9]+$")


# =============================================================================
# VALUE TYPES
# =============================================================================

@dataclass(frozen=True)
class BloodPressure:
    """Systolic/diastolic pair in mmHg."""

    systolic: int
    diastolic: int

    def __str__(self) -> str:
        return f"{self.systolic}/{self.diastolic}"


@dataclass(frozen=True)
class VitalsReading:
    """A validated vitals snapshot with every field normalised to int."""

    blood_pressure: BloodPressure
    respiratory_rate: int
    oxygen_level: int
    heartbeat_rate: int

    def classify(self) -> StatusLabel:
        return classify(
            self.blood_pressure,
            self.respiratory_rate,
            self.oxygen_level,
            self.heartbeat_rate,
        )


BloodPressureInput = Union[str, BloodPressure, Mapping[str, Any]]


# =============================================================================
# PARSING
# =============================================================================

def parse_blood_pressure(value: BloodPressureInput) -> BloodPressure:
    """
    Parse blood pressure from a "SS/DD" string or a systolic/diastolic mapping.

    Only the format is checked here; ranges are checked by validate_vitals().

    Raises:
        VitalsValidationError: If the value is not in a recognised format.
    """
    if isinstance(value, BloodPressure):
        return value

    if isinstance(value, Mapping):
        try:
            return BloodPressure(
                systolic=_parse_int(value["systolic"], "bloodPressure.systolic"),
                diastolic=_parse_int(value["diastolic"], "bloodPressure.diastolic"),
            )
        except KeyError as e:
            raise VitalsValidationError(
                field="bloodPressure",
                rule=f"missing '{e.args[0]}'",
            ) from None

    if isinstance(value, str):
        match = _BLOOD_PRESSURE_PATTERN.match(value.strip())
        if match:
            return BloodPressure(systolic=int(match.group(1)), diastolic=int(match.group(2)))

    raise VitalsValidationError(
        field="bloodPressure",
        rule="must be in the format '120/80'",
        value=value,
    )


def _parse_int(value: Any, field: str) -> int:
    """Accept ints and decimal-digit strings; reject everything else."""
    # bool is an int subclass
    if isinstance(value, bool):
        raise VitalsValidationError(field=field, rule="must be an integer", value=value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INTEGER_PATTERN.match(value.strip()):
        return int(value.strip())
    raise VitalsValidationError(field=field, rule="must be an integer", value=value)


# =============================================================================
# VALIDATION
# =============================================================================

def validate_vitals(
    blood_pressure: BloodPressureInput,
    respiratory_rate: Any,
    oxygen_level: Any,
    heartbeat_rate: Any,
) -> VitalsReading:
    """
    Validate raw vitals input and normalise it.

    Fields are checked in the order blood pressure, respiratory rate,
    oxygen level, heartbeat rate; the first failure is raised.

    Raises:
        VitalsValidationError: Naming the offending field and the violated rule.
    """
    bp = parse_blood_pressure(blood_pressure)
    SYSTOLIC_RANGE.check(bp.systolic)
    DIASTOLIC_RANGE.check(bp.diastolic)

    respiratory = _parse_int(respiratory_rate, RESPIRATORY_RATE_RANGE.field)
    RESPIRATORY_RATE_RANGE.check(respiratory)

    oxygen = _parse_int(oxygen_level, OXYGEN_LEVEL_RANGE.field)
    OXYGEN_LEVEL_RANGE.check(oxygen)

    heartbeat = _parse_int(heartbeat_rate, HEARTBEAT_RATE_RANGE.field)
    HEARTBEAT_RATE_RANGE.check(heartbeat)

    return VitalsReading(
        blood_pressure=bp,
        respiratory_rate=respiratory,
        oxygen_level=oxygen,
        heartbeat_rate=heartbeat,
    )


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify(
    blood_pressure: BloodPressureInput,
    respiratory_rate: int,
    oxygen_level: int,
    heartbeat_rate: int,
) -> StatusLabel:
    """
    Derive a health status from a vitals snapshot. First match wins:

    1. Critical: systolic > 180, diastolic > 120, heartbeat > 120 or oxygen < 90
    2. At Risk: systolic > 140, diastolic > 90 or oxygen < 95
    3. Stable otherwise

    Respiratory rate is accepted for completeness but does not take part in
    any rule.

    Range checks are not repeated here; callers run validate_vitals() first.
    """
    bp = parse_blood_pressure(blood_pressure)
    oxygen = _parse_int(oxygen_level, OXYGEN_LEVEL_RANGE.field)
    heartbeat = _parse_int(heartbeat_rate, HEARTBEAT_RATE_RANGE.field)

    if bp.systolic > 180 or bp.diastolic > 120 or heartbeat > 120 or oxygen < 90:
        status = StatusLabel.CRITICAL
    elif bp.systolic > 140 or bp.diastolic > 90 or oxygen < 95:
        status = StatusLabel.AT_RISK
    else:
        status = StatusLabel.STABLE

    logger.debug(
        "Vitals classified",
        extra={"blood_pressure": str(bp), "oxygen_level": oxygen,
               "heartbeat_rate": heartbeat, "status": status.value}
    )
    return status
