"""
Operational endpoints: liveness, readiness, metrics and service info.

/ready opens the document store and reports its journal mode, schema version
and patient count; a store that cannot be queried makes the service not ready
(503). /metrics exposes core.metrics in Prometheus text format.
"""
import logging
import sqlite3
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from core.datetime_utils import utc_now, format_iso
from core.dependencies import get_database
from core.metrics import get_metrics
from core.vitals import StatusLabel
from repositories import Database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Operations"])

SERVICE_NAME = "Patient Service API"
SERVICE_VERSION = "1.0.0"


class LivenessResponse(BaseModel):
    status: str
    version: str
    timestamp: str


class StoreStatus(BaseModel):
    reachable: bool
    latency_ms: float
    journal_mode: Optional[str] = None
    schema_version: Optional[int] = None
    patients: Optional[int] = None
    error: Optional[str] = None


class ReadinessResponse(BaseModel):
    status: str  # "ready" | "not_ready"
    store: StoreStatus
    timestamp: str


@router.get("/health", response_model=LivenessResponse, summary="Liveness check")
async def health_check() -> LivenessResponse:
    """The process is up; dependencies are not checked."""
    return LivenessResponse(status="healthy", version=SERVICE_VERSION, timestamp=format_iso(utc_now()))


@router.get("/ready", response_model=ReadinessResponse, summary="Readiness check")
def readiness_check(response: Response, db: Database = Depends(get_database)) -> ReadinessResponse:
    """Ready when the document store answers a query."""
    start = time.perf_counter()
    try:
        store = StoreStatus(reachable=True, latency_ms=0.0, **db.describe())
    except sqlite3.Error as e:
        logger.error("Document store unreachable", extra={"error": str(e)})
        store = StoreStatus(reachable=False, latency_ms=0.0, error=type(e).__name__)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    store.latency_ms = round((time.perf_counter() - start) * 1000, 2)

    return ReadinessResponse(
        status="ready" if store.reachable else "not_ready",
        store=store,
        timestamp=format_iso(utc_now()),
    )


@router.get("/metrics", summary="Prometheus metrics")
async def metrics() -> Response:
    """Traffic per route plus classification, append and rejection counters."""
    return Response(
        content=get_metrics().render_prometheus(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@router.get("/", summary="Service info")
async def root() -> Dict[str, Any]:
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "patients": "/api/patient",
        "statusLabels": [label.value for label in StatusLabel],
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
        "metrics": "/metrics",
    }
