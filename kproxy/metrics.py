"""Request metrics with an in-process Prometheus text exposition."""

from __future__ import annotations

import threading
from collections import defaultdict

_KNOWN_METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "CONNECT", "OPTIONS", "TRACE"}
)
DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10)

_PREFIX = "kamal_proxy_"


def normalize_method(method: str) -> str:
    return method if method in _KNOWN_METHODS else "OTHER"


class NullTracker:
    """A tracker that records no metrics, only how many events it discarded."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.ignored = 0

    def _discard(self) -> None:
        with self._lock:
            self.ignored += 1

    def track_request(self, service, method, status, duration) -> None:
        self._discard()

    def add_inflight_request(self, service) -> None:
        self._discard()

    def subtract_inflight_request(self, service) -> None:
        self._discard()


def _fmt(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return repr(value)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _labels(pairs) -> str:
    return "{" + ",".join(f'{k}="{_escape(v)}"' for k, v in pairs) + "}"


class PrometheusTracker:
    """Counts requests, durations (seconds) and in-flight requests per service."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests: dict[tuple, float] = defaultdict(float)
        self._hist: dict[tuple, list] = {}
        self._inflight: dict[str, float] = defaultdict(float)

    def track_request(self, service, method, status, duration) -> None:
        key = (service, normalize_method(method), str(status))
        with self._lock:
            self._requests[key] += 1
            counts, total = self._hist.get(key, ([0] * len(DEFAULT_BUCKETS), 0.0))
            for i, bound in enumerate(DEFAULT_BUCKETS):
                if duration <= bound:
                    counts[i] += 1
            self._hist[key] = (counts, total + duration)

    def add_inflight_request(self, service) -> None:
        with self._lock:
            self._inflight[service] += 1

    def subtract_inflight_request(self, service) -> None:
        with self._lock:
            self._inflight[service] -= 1

    def render(self) -> str:
        """Return all metrics in Prometheus text format."""
        names = ("service", "method", "status")
        lines = []
        with self._lock:
            name = _PREFIX + "http_requests_total"
            lines += [
                f"# HELP {name} HTTP requests processed, labeled by service, status code and method.",
                f"# TYPE {name} counter",
            ]
            for key, value in sorted(self._requests.items()):
                lines.append(f"{name}{_labels(zip(names, key))} {_fmt(value)}")

            name = _PREFIX + "http_request_duration_seconds"
            lines += [
                f"# HELP {name} Duration of HTTP requests, labeled by service, status code and method.",
                f"# TYPE {name} histogram",
            ]
            for key, (counts, total) in sorted(self._hist.items()):
                base = list(zip(names, key))
                for bound, count in zip(DEFAULT_BUCKETS, counts):
                    lines.append(f"{name}_bucket{_labels(base + [('le', _fmt(bound))])} {count}")
                n = self._requests[key]
                lines.append(f"{name}_bucket{_labels(base + [('le', '+Inf')])} {_fmt(n)}")
                lines.append(f"{name}_sum{_labels(base)} {_fmt(total)}")
                lines.append(f"{name}_count{_labels(base)} {_fmt(n)}")

            name = _PREFIX + "http_in_flight_requests"
            lines += [
                f"# HELP {name} Number of in-flight HTTP requests, labeled by service.",
                f"# TYPE {name} gauge",
            ]
            for service, value in sorted(self._inflight.items()):
                lines.append(f"{name}{_labels([('service', service)])} {_fmt(value)}")
        return "\n".join(lines) + "\n"


_tracker: NullTracker | PrometheusTracker = NullTracker()


def enable() -> PrometheusTracker:
    """Switch to a Prometheus tracker and return it."""
    global _tracker
    _tracker = PrometheusTracker()
    return _tracker


def get_tracker() -> NullTracker | PrometheusTracker:
    return _tracker