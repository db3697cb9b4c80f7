"""
Sequential batch submission with per-record failure accounting.

Records are awaited one after another, never gathered: a failure on one
record is logged and counted, and the remaining records are still sent.
There is no cancellation of a batch once started.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Sequence, Tuple, TypeVar

from incentive.services.monitoring import timed_async, tracker

logger = logging.getLogger("incentive-submission")

T = TypeVar("T")
RecordSink = Callable[[T], Awaitable[Any]]


@dataclass
class SubmissionResult:
    kind: str
    succeeded: int = 0
    failed: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0

    @property
    def partial(self) -> bool:
        return self.succeeded > 0 and self.failed > 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "errors": list(self.errors),
        }


@timed_async
async def submit_sequentially(
    kind: str,
    records: Sequence[Tuple[str, T]],
    sink: RecordSink,
) -> SubmissionResult:
    """
    Send ``(key, record)`` pairs to ``sink`` in order.  ``key`` identifies the
    record in logs and in the returned error list (employee code, building id).
    """
    result = SubmissionResult(kind=kind)
    for key, record in records:
        try:
            await sink(record)
        except Exception as exc:
            result.failed += 1
            result.errors.append({"key": key, "error": str(exc) or type(exc).__name__})
            logger.warning(
                "%s record %s failed: %s", kind, key, exc,
                exc_info=True, extra={"emp_code": key},
            )
        else:
            result.succeeded += 1

    tracker.record_batch(kind, result.succeeded, result.failed)
    logger.info(
        "%s batch submitted: %d ok, %d failed", kind, result.succeeded, result.failed,
    )
    return result
