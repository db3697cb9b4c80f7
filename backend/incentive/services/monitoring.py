"""
Request timing middleware and in-process submission metrics.

``tracker`` is a module-level singleton fed by every batch submission
(timesheet, allowance, general incentive) and read back by ``/metrics``.
"""
import time
import uuid
import logging
import threading
import functools
from typing import Any, Callable, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("incentive-api.monitoring")

SKIP_LOG_PATHS = {"/health"}


def timed_async(func: Callable) -> Callable:
    """Log how long an async callable took, at DEBUG level."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.debug(
                "%s finished", func.__qualname__,
                extra={"duration_ms": duration_ms},
            )
    return wrapper


class SubmissionTracker:
    """
    Thread-safe counters for batch submissions, keyed by batch kind
    ("timesheet", "allowance", "general_incentive").
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._batches: Dict[str, int] = {}
        self._records_ok: Dict[str, int] = {}
        self._records_failed: Dict[str, int] = {}
        self._requests = 0

    def record_batch(self, kind: str, succeeded: int, failed: int) -> None:
        with self._lock:
            self._batches[kind] = self._batches.get(kind, 0) + 1
            self._records_ok[kind] = self._records_ok.get(kind, 0) + succeeded
            self._records_failed[kind] = self._records_failed.get(kind, 0) + failed

    def record_request(self) -> None:
        with self._lock:
            self._requests += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Snapshot of all counters."""
        with self._lock:
            kinds = sorted(set(self._batches) | set(self._records_ok) | set(self._records_failed))
            return {
                "requests_served": self._requests,
                "batches": {
                    kind: {
                        "submitted": self._batches.get(kind, 0),
                        "records_succeeded": self._records_ok.get(kind, 0),
                        "records_failed": self._records_failed.get(kind, 0),
                    }
                    for kind in kinds
                },
            }

    def reset(self) -> None:
        """Reset all counters (useful in tests)."""
        with self._lock:
            self._batches.clear()
            self._records_ok.clear()
            self._records_failed.clear()
            self._requests = 0


# Module-level singleton shared by submissions and the request middleware
tracker = SubmissionTracker()


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Assigns X-Request-ID, measures duration into X-Process-Time and emits one
    structured log line per request (except /health).
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()
        request.state.request_id = request_id

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)
        tracker.record_request()

        if request.url.path not in SKIP_LOG_PATHS:
            logger.info(
                "request completed",
                extra={
                    "http_method": request.method,
                    "http_path": request.url.path,
                    "http_status": response.status_code,
                    "request_id": request_id,
                    "duration_ms": duration_ms,
                },
            )
        return response
