"""
In-process service metrics for Patient Service API.

Two kinds of numbers are kept:

- HTTP traffic per route template (``/api/patient/{patient_id}``, not the
  concrete id) with a bounded window of recent latencies.
- Domain outcomes: how readings were classified, how history appends ended,
  and why requests were refused (validation field, version conflict, unknown id).

Everything lives in memory and resets on restart; /metrics renders it in the
Prometheus text exposition format.

Usage:
    from core.metrics import get_metrics

    get_metrics().record_classification(StatusLabel.AT_RISK)
"""
import threading
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional, Tuple


# Outcomes of a single append_entry call
APPEND_APPENDED = "appended"
APPEND_RETRIED = "retried"
APPEND_ABANDONED = "abandoned"

# Reasons a request was refused
REJECTED_VALIDATION = "validation"
REJECTED_CONFLICT = "conflict"
REJECTED_NOT_FOUND = "not_found"


def _status_class(status_code: int) -> str:
    return f"{status_code // 100}xx"


def _labels(**labels: str) -> str:
    body = ",".join(f'{key}="{value}"' for key, value in labels.items())
    return "{" + body + "}"


@dataclass
class ServiceMetrics:
    """
    Thread-safe counters for traffic and domain outcomes.

    Args:
        max_history: How many recent request latencies the percentiles cover.
    """

    max_history: int = 1000
    requests: Counter = field(default_factory=Counter)
    classifications: Counter = field(default_factory=Counter)
    appends: Counter = field(default_factory=Counter)
    rejections: Counter = field(default_factory=Counter)
    invalid_fields: Counter = field(default_factory=Counter)
    _latencies: Deque[float] = field(init=False, repr=False, default_factory=deque)
    _lock: threading.Lock = field(init=False, repr=False, default_factory=threading.Lock)

    def __post_init__(self) -> None:
        self._latencies = deque(maxlen=self.max_history)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_request(self, method: str, route: str, status_code: int, duration_ms: float) -> None:
        with self._lock:
            self.requests[(method, route, _status_class(status_code))] += 1
            self._latencies.append(duration_ms)

    def record_classification(self, status) -> None:
        """Count a computed health status (a StatusLabel or its string value)."""
        label = getattr(status, "value", status)
        with self._lock:
            self.classifications[label] += 1

    def record_append(self, outcome: str) -> None:
        with self._lock:
            self.appends[outcome] += 1

    def record_rejection(self, reason: str, field_name: Optional[str] = None) -> None:
        with self._lock:
            self.rejections[reason] += 1
            if field_name:
                self.invalid_fields[field_name] += 1

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    @property
    def window_size(self) -> int:
        return len(self._latencies)

    def latency_percentiles(self) -> Dict[str, float]:
        """Nearest-rank p50/p95/p99 over the latency window, zeros when empty."""
        with self._lock:
            durations = sorted(self._latencies)
        if not durations:
            return {"p50": 0.0, "p95": 0.0, "p99": 0.0}

        last = len(durations) - 1
        return {
            name: round(durations[min(int(len(durations) * q), last)], 2)
            for name, q in (("p50", 0.50), ("p95", 0.95), ("p99", 0.99))
        }

    def render_prometheus(self) -> str:
        """Export every series in Prometheus text format."""
        with self._lock:
            requests = dict(self.requests)
            classifications = dict(self.classifications)
            appends = dict(self.appends)
            rejections = dict(self.rejections)
            invalid_fields = dict(self.invalid_fields)

        lines: List[str] = []

        def family(name: str, kind: str, help_text: str, samples: Iterable[Tuple[str, object]]) -> None:
            lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} {kind}")
            lines.extend(f"{name}{labels} {value}" for labels, value in samples)
            lines.append("")

        family(
            "patient_svc_http_requests_total", "counter", "HTTP requests by route and status class",
            ((_labels(method=m, route=r, status=s), n) for (m, r, s), n in sorted(requests.items())),
        )
        family(
            "patient_svc_http_request_duration_ms", "gauge", "Request latency percentiles over the recent window",
            ((_labels(quantile=q), v) for q, v in zip(("0.5", "0.95", "0.99"), self.latency_percentiles().values())),
        )
        family(
            "patient_svc_classifications_total", "counter", "Health statuses computed from vitals readings",
            ((_labels(status=s), n) for s, n in sorted(classifications.items())),
        )
        family(
            "patient_svc_history_appends_total", "counter", "History append attempts by outcome",
            ((_labels(outcome=o), n) for o, n in sorted(appends.items())),
        )
        family(
            "patient_svc_rejected_requests_total", "counter", "Requests refused by reason",
            ((_labels(reason=r), n) for r, n in sorted(rejections.items())),
        )
        family(
            "patient_svc_invalid_vitals_total", "counter", "Vitals validation failures by field",
            ((_labels(field=f), n) for f, n in sorted(invalid_fields.items())),
        )
        return "\n".join(lines)


_metrics = ServiceMetrics()


def get_metrics() -> ServiceMetrics:
    """Get the process-wide metrics instance."""
    return _metrics
