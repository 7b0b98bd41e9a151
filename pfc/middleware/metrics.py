"""Prometheus-compatible metrics endpoint and request tracking middleware."""
from __future__ import annotations

import time
from collections import defaultdict
from threading import Lock

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

# Anything else is reported as "other" to keep label cardinality bounded
KNOWN_PATHS = frozenset({"/pfc", "/health", "/ready"})


class _Metrics:
    """Thread-safe in-memory metrics collector."""

    def __init__(self):
        self._lock = Lock()
        self.request_count: dict[tuple[str, str, int], int] = defaultdict(int)
        self.request_duration_sum: dict[tuple[str, str], float] = defaultdict(float)
        self.request_duration_count: dict[tuple[str, str], int] = defaultdict(int)
        self.active_requests = 0
        self.startup_time = time.time()

    def reset(self):
        with self._lock:
            self.request_count.clear()
            self.request_duration_sum.clear()
            self.request_duration_count.clear()
            self.active_requests = 0

    def record(self, method: str, path: str, status: int, duration: float):
        with self._lock:
            self.request_count[(method, path, status)] += 1
            self.request_duration_sum[(method, path)] += duration
            self.request_duration_count[(method, path)] += 1

    def inc_active(self):
        with self._lock:
            self.active_requests += 1

    def dec_active(self):
        with self._lock:
            self.active_requests -= 1

    def render(self) -> str:
        lines: list[str] = [
            "# HELP pfc_http_requests_total Total HTTP requests",
            "# TYPE pfc_http_requests_total counter",
        ]
        with self._lock:
            for (method, path, status), count in sorted(self.request_count.items()):
                lines.append(
                    f'pfc_http_requests_total{{method="{method}",path="{path}",status="{status}"}} {count}'
                )

            lines += [
                "",
                "# HELP pfc_http_request_duration_seconds HTTP request duration",
                "# TYPE pfc_http_request_duration_seconds summary",
            ]
            for (method, path), total in sorted(self.request_duration_sum.items()):
                count = self.request_duration_count[(method, path)]
                labels = f'method="{method}",path="{path}"'
                lines.append(f"pfc_http_request_duration_seconds_sum{{{labels}}} {total:.6f}")
                lines.append(f"pfc_http_request_duration_seconds_count{{{labels}}} {count}")

            lines += [
                "",
                "# HELP pfc_active_requests Current in-flight requests",
                "# TYPE pfc_active_requests gauge",
                f"pfc_active_requests {self.active_requests}",
                "",
                "# HELP pfc_uptime_seconds Seconds since process start",
                "# TYPE pfc_uptime_seconds gauge",
                f"pfc_uptime_seconds {time.time() - self.startup_time:.1f}",
            ]

        return "\n".join(lines) + "\n"


metrics = _Metrics()


def _normalize_path(path: str) -> str:
    path = path.rstrip("/") or "/"
    return path if path in KNOWN_PATHS else "other"


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return PlainTextResponse(metrics.render(), media_type="text/plain; version=0.0.4")

        path = _normalize_path(request.url.path)
        metrics.inc_active()
        start = time.perf_counter()
        try:
            response = await call_next(request)
            metrics.record(request.method, path, response.status_code, time.perf_counter() - start)
            return response
        except Exception:
            metrics.record(request.method, path, 500, time.perf_counter() - start)
            raise
        finally:
            metrics.dec_active()
