"""
Tests for the patient document store.
"""
import pytest

from core.exceptions import ConcurrentUpdateError


def make_document(name="Jane Smith", **overrides):
    doc = {
        "name": name,
        "dob": "1985-07-20",
        "healthStatus": "Stable",
        "lastVisit": "2025-01-01T10:00:00Z",
        "bloodPressure": "120/80",
        "respiratoryRate": 16,
        "oxygenLevel": 98,
        "heartbeatRate": 72,
        "history": [],
    }
    doc.update(overrides)
    return doc


def test_create_and_get(patient_repo):
    doc_id = patient_repo.create(make_document())

    stored = patient_repo.get(doc_id)
    assert stored["id"] == doc_id
    assert stored["version"] == 1
    assert stored["name"] == "Jane Smith"
    assert stored["history"] == []


def test_create_ignores_id_and_version(patient_repo):
    doc_id = patient_repo.create(make_document(id="chosen-by-client", version=99))

    assert doc_id != "chosen-by-client"
    assert patient_repo.get(doc_id)["version"] == 1
    assert patient_repo.get("chosen-by-client") is None


def test_create_generates_unique_ids(patient_repo):
    ids = {patient_repo.create(make_document()) for _ in range(5)}
    assert len(ids) == 5


def test_get_missing(patient_repo):
    assert patient_repo.get("missing") is None


def test_update_replaces_and_bumps_version(patient_repo):
    doc_id = patient_repo.create(make_document())

    stored = patient_repo.update(doc_id, make_document(name="Jane Doe"))

    assert stored["name"] == "Jane Doe"
    assert stored["version"] == 2
    assert patient_repo.get(doc_id) == stored


def test_update_missing_returns_none(patient_repo):
    assert patient_repo.update("missing", make_document()) is None
    assert patient_repo.update("missing", make_document(), expected_version=1) is None


def test_conditional_update_matching_version(patient_repo):
    doc_id = patient_repo.create(make_document())

    stored = patient_repo.update(doc_id, make_document(name="Jane Doe"), expected_version=1)

    assert stored["version"] == 2


def test_conditional_update_stale_version(patient_repo):
    doc_id = patient_repo.create(make_document())
    patient_repo.update(doc_id, make_document(name="First writer"))

    with pytest.raises(ConcurrentUpdateError) as exc_info:
        patient_repo.update(doc_id, make_document(name="Second writer"), expected_version=1)

    assert exc_info.value.context["expected_version"] == 1
    stored = patient_repo.get(doc_id)
    assert stored["name"] == "First writer"
    assert stored["version"] == 2


def test_delete(patient_repo):
    doc_id = patient_repo.create(make_document())

    assert patient_repo.delete(doc_id) is True
    assert patient_repo.get(doc_id) is None
    assert patient_repo.delete(doc_id) is False


def test_list_in_insertion_order(patient_repo):
    assert patient_repo.list() == []

    for name in ("Zed", "Amy", "Bob"):
        patient_repo.create(make_document(name=name))

    assert [doc["name"] for doc in patient_repo.list()] == ["Zed", "Amy", "Bob"]


def test_document_round_trips_unicode(patient_repo):
    doc_id = patient_repo.create(make_document(name="Zoë Müller"))
    assert patient_repo.get(doc_id)["name"] == "Zoë Müller"
