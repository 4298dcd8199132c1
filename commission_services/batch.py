"""
commission_services.batch -- Independent computations for many investments.

Responsibility:
    Run ``CommissionEngine.compute`` over a sequence of investments on a
    thread pool, isolating failures per item.

Architecture position:
    Services -- orchestration.  The engine is pure, so workers need no
    coordination beyond collecting results.

Invariants enforced:
    - Results keep input order regardless of completion order.
    - A failing investment becomes a ``BatchFailure``; it never aborts the
      others.
    - Every item of a batch logs under the same ``batch_id``.

Failure modes:
    - Input, rate and validation errors are recorded per item.
    - CalendarError is a logic bug and propagates out of the batch.
    - ValueError for a non-positive ``max_workers``.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from uuid import uuid4

from commission_kernel.domain.values import CommissionResult, Investment
from commission_kernel.exceptions import CalendarError, CommissionError
from commission_kernel.logging_config import LogContext, get_logger
from commission_services.engine import CommissionEngine

logger = get_logger("services.batch")


class BatchItemStatus(str, Enum):
    """Per-item status within a batch."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class BatchFailure:
    """One investment that could not be computed."""

    index: int
    investment_id: str | None
    error_code: str
    message: str


@dataclass(frozen=True)
class BatchItemResult:
    index: int
    status: BatchItemStatus
    result: CommissionResult | None = None
    failure: BatchFailure | None = None


@dataclass(frozen=True)
class BatchOutcome:
    """Per-item results of a batch, in input order."""

    batch_id: str
    items: tuple[BatchItemResult, ...]

    @property
    def results(self) -> tuple[CommissionResult, ...]:
        return tuple(i.result for i in self.items if i.result is not None)

    @property
    def failures(self) -> tuple[BatchFailure, ...]:
        return tuple(i.failure for i in self.items if i.failure is not None)

    @property
    def succeeded(self) -> int:
        return sum(1 for i in self.items if i.status is BatchItemStatus.SUCCEEDED)

    @property
    def all_succeeded(self) -> bool:
        return self.succeeded == len(self.items)


def _error_code(exc: Exception) -> str:
    if isinstance(exc, CommissionError):
        return exc.code
    return type(exc).__name__.upper()


def _compute_one(
    engine: CommissionEngine,
    index: int,
    investment: Investment,
    batch_id: str,
) -> BatchItemResult:
    with LogContext.bind(batch_id=batch_id):
        try:
            return BatchItemResult(
                index=index,
                status=BatchItemStatus.SUCCEEDED,
                result=engine.compute(investment),
            )
        except CalendarError:
            raise
        except (CommissionError, ValueError, TypeError) as exc:
            logger.error("batch_item_failed", extra={
                "index": index,
                "investment_id": investment.investment_id,
                "error_code": _error_code(exc),
                "error": str(exc),
            })
            return BatchItemResult(
                index=index,
                status=BatchItemStatus.FAILED,
                failure=BatchFailure(
                    index=index,
                    investment_id=investment.investment_id,
                    error_code=_error_code(exc),
                    message=str(exc),
                ),
            )


def compute_many(
    engine: CommissionEngine,
    investments: Sequence[Investment],
    max_workers: int | None = None,
) -> BatchOutcome:
    """
    Compute every investment independently on a thread pool.

    Args:
        engine: Engine shared by all workers.
        investments: Investments to compute.
        max_workers: Pool size; ``None`` lets the executor choose.
    """
    if max_workers is not None and max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")

    batch_id = str(uuid4())
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [
            pool.submit(_compute_one, engine, index, investment, batch_id)
            for index, investment in enumerate(investments)
        ]
        items = tuple(f.result() for f in futures)

    outcome = BatchOutcome(batch_id=batch_id, items=items)
    logger.info("batch_completed", extra={
        "batch_id": batch_id,
        "total": len(items),
        "succeeded": outcome.succeeded,
        "failed": len(items) - outcome.succeeded,
    })
    return outcome
