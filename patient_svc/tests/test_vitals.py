"""
Tests for vitals validation and health-status classification.
"""
import pytest

from core.exceptions import VitalsValidationError
from core.vitals import (
    BloodPressure,
    StatusLabel,
    classify,
    parse_blood_pressure,
    validate_vitals,
)


# =============================================================================
# CLASSIFICATION
# =============================================================================

def test_classify_stable():
    assert classify("110/70", 16, 98, 70) is StatusLabel.STABLE


def test_classify_critical_on_diastolic():
    """Diastolic above 120 is critical even with everything else normal."""
    assert classify("200/130", 16, 98, 70) is StatusLabel.CRITICAL


def test_classify_at_risk_on_systolic():
    assert classify("150/80", 18, 96, 75) is StatusLabel.AT_RISK


@pytest.mark.parametrize("blood_pressure,oxygen,heartbeat", [
    ("181/80", 98, 70),   # systolic
    ("120/80", 89, 70),   # oxygen
    ("120/80", 98, 121),  # heartbeat
])
def test_classify_critical_branches(blood_pressure, oxygen, heartbeat):
    assert classify(blood_pressure, 16, oxygen, heartbeat) is StatusLabel.CRITICAL


@pytest.mark.parametrize("blood_pressure,oxygen", [
    ("120/91", 98),  # diastolic
    ("120/80", 94),  # oxygen
])
def test_classify_at_risk_branches(blood_pressure, oxygen):
    assert classify(blood_pressure, 16, oxygen, 70) is StatusLabel.AT_RISK


def test_classify_thresholds_are_exclusive():
    """Values sitting exactly on a threshold do not trip it."""
    assert classify("140/90", 16, 95, 120) is StatusLabel.STABLE
    assert classify("180/120", 16, 90, 120) is StatusLabel.AT_RISK


def test_classify_critical_takes_precedence_over_at_risk():
    assert classify("150/95", 16, 85, 70) is StatusLabel.CRITICAL


def test_classify_accepts_mapping_and_value_object():
    assert classify({"systolic": 200, "diastolic": 130}, 16, 98, 70) is StatusLabel.CRITICAL
    assert classify(BloodPressure(110, 70), 16, 98, 70) is StatusLabel.STABLE


def test_classify_ignores_respiratory_rate():
    assert classify("110/70", 5, 98, 70) is classify("110/70", 40, 98, 70)


def test_classify_is_deterministic():
    results = {classify("150/80", 18, 96, 75) for _ in range(10)}
    assert results == {StatusLabel.AT_RISK}


def test_status_label_values():
    assert StatusLabel.AT_RISK == "At Risk"
    assert StatusLabel.CRITICAL.value == "Critical"


# =============================================================================
# VALIDATION
# =============================================================================

def test_validate_vitals_normalises_strings():
    reading = validate_vitals("120/80", "16", "98", " 72 ")
    assert reading.blood_pressure == BloodPressure(120, 80)
    assert reading.respiratory_rate == 16
    assert reading.oxygen_level == 98
    assert reading.heartbeat_rate == 72
    assert reading.classify() is StatusLabel.STABLE


def test_validate_vitals_systolic_out_of_range():
    with pytest.raises(VitalsValidationError) as exc_info:
        validate_vitals("250/80", 16, 98, 72)

    assert exc_info.value.field == "bloodPressure.systolic"
    assert "70" in exc_info.value.rule and "200" in exc_info.value.rule


def test_validate_vitals_diastolic_out_of_range():
    with pytest.raises(VitalsValidationError) as exc_info:
        validate_vitals("200/130", 16, 98, 72)

    assert exc_info.value.field == "bloodPressure.diastolic"


@pytest.mark.parametrize("value", ["120", "120-80", "1/80", "1200/80", "abc/def", ""])
def test_validate_vitals_bad_blood_pressure_format(value):
    with pytest.raises(VitalsValidationError) as exc_info:
        validate_vitals(value, 16, 98, 72)

    assert exc_info.value.field == "bloodPressure"
    assert "120/80" in exc_info.value.rule


@pytest.mark.parametrize("respiratory,oxygen,heartbeat,field", [
    (4, 98, 72, "respiratoryRate"),
    (41, 98, 72, "respiratoryRate"),
    (16, 101, 72, "oxygenLevel"),
    (16, -1, 72, "oxygenLevel"),
    (16, 98, 29, "heartbeatRate"),
    (16, 98, 201, "heartbeatRate"),
])
def test_validate_vitals_ranges(respiratory, oxygen, heartbeat, field):
    with pytest.raises(VitalsValidationError) as exc_info:
        validate_vitals("120/80", respiratory, oxygen, heartbeat)

    assert exc_info.value.field == field


def test_validate_vitals_accepts_range_boundaries():
    reading = validate_vitals("70/40", 5, 0, 30)
    assert reading.oxygen_level == 0

    reading = validate_vitals("200/120", 40, 100, 200)
    assert reading.heartbeat_rate == 200


@pytest.mark.parametrize("value", ["", "fast", "72.5", 72.5, True, None])
def test_validate_vitals_rejects_non_integers(value):
    with pytest.raises(VitalsValidationError) as exc_info:
        validate_vitals("120/80", 16, 98, value)

    assert exc_info.value.field == "heartbeatRate"
    assert exc_info.value.rule == "must be an integer"


def test_validation_error_reports_field_and_rule():
    error = VitalsValidationError(field="oxygenLevel", rule="must be between 0 and 100")
    assert error.status_code == 422
    assert error.to_dict() == {
        "detail": "oxygenLevel: must be between 0 and 100",
        "context": {"field": "oxygenLevel", "rule": "must be between 0 and 100"},
    }


def test_parse_blood_pressure_mapping_missing_key():
    with pytest.raises(VitalsValidationError) as exc_info:
        parse_blood_pressure({"systolic": 120})

    assert exc_info.value.field == "bloodPressure"
    assert "diastolic" in exc_info.value.rule


def test_blood_pressure_str():
    assert str(BloodPressure(120, 80)) == "120/80"


@pytest.mark.parametrize("value", ["٩٨", "９８", "98٣"])
def test_validate_vitals_rejects_non_ascii_digits(value):
    with pytest.raises(VitalsValidationError) as exc_info:
        validate_vitals("120/80", 16, value, 72)

    assert exc_info.value.field == "oxygenLevel"
    assert exc_info.value.rule == "must be an integer"


def test_parse_blood_pressure_rejects_non_ascii_digits():
    with pytest.raises(VitalsValidationError) as exc_info:
        parse_blood_pressure("١٢٠/٨٠")

    assert exc_info.value.field == "bloodPressure"
