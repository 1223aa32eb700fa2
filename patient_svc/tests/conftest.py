"""
Shared pytest fixtures for API tests.

Fixture Hierarchy:
    temp_db → patient_repo → services (+ service_metrics) → test_app → client

Each test gets a fresh temporary SQLite database, and the real routers are
mounted on an app whose DI functions are overridden to use it.
"""
import os
import tempfile
import pytest
from fastapi.testclient import TestClient
from fastapi import FastAPI

from repositories.base import Database
from repositories import PatientRepository
from services.patient_service import PatientService
from services.history_service import HistoryService
from core.exceptions import setup_exception_handlers
from core import dependencies as deps
from core import metrics as core_metrics
from core.metrics import ServiceMetrics


@pytest.fixture
def temp_db():
    """
    Create a temporary database for testing.
    """
    fd, db_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)

    db = Database(db_path=db_path)
    yield db

    for path in (db_path, f"{db_path}-wal", f"{db_path}-shm"):
        if os.path.exists(path):
            os.unlink(path)


@pytest.fixture
def patient_repo(temp_db):
    """Create a PatientRepository with the test database."""
    return PatientRepository(db=temp_db)


@pytest.fixture
def service_metrics(monkeypatch):
    """A fresh metrics instance, installed as the process-wide one."""
    fresh = ServiceMetrics()
    monkeypatch.setattr(core_metrics, "_metrics", fresh)
    return fresh


@pytest.fixture
def patient_service(patient_repo, service_metrics):
    """Create a PatientService with the test repository."""
    return PatientService(patient_repository=patient_repo, metrics=service_metrics)


@pytest.fixture
def history_service(patient_repo, service_metrics):
    """Create a HistoryService with the test repository and default settings."""
    return HistoryService(patient_repository=patient_repo, metrics=service_metrics)


@pytest.fixture
def test_app(temp_db, patient_repo, patient_service, history_service):
    """
    Create a FastAPI test app with dependency overrides.

    Uses the real routers and exception handlers; only the DI functions are
    replaced so that everything talks to the temporary database.
    """
    from api.routers import health_router, patients_router, history_router

    app = FastAPI(title="Patient Service API Test")

    setup_exception_handlers(app)

    app.dependency_overrides[deps.get_database] = lambda: temp_db
    app.dependency_overrides[deps.get_patient_repository] = lambda: patient_repo
    app.dependency_overrides[deps.get_patient_service] = lambda: patient_service
    app.dependency_overrides[deps.get_history_service] = lambda: history_service

    app.include_router(health_router)
    app.include_router(patients_router)
    app.include_router(history_router)

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client for the API."""
    return TestClient(test_app)


@pytest.fixture
def patient_payload():
    """A valid create-patient body, as the mobile client sends it."""
    return {
        "name": "John Doe",
        "dob": "1990-01-15",
        "lastVisit": "2025-01-01T10:00:00Z",
        "bloodPressure": "120/80",
        "respiratoryRate": 16,
        "oxygenLevel": "98",
        "heartbeatRate": "72",
    }


@pytest.fixture
def created_patient(client, patient_payload):
    """A patient that already exists in the store."""
    response = client.post("/api/patient", json=patient_payload)
    assert response.status_code == 201
    return response.json()
