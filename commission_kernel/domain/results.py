"""
Boundary results.

Responsibility:
    Tagged success/failure values for data-quality checks at the intake
    boundary (malformed dates, missing rates). Parsers return a
    ``ParseResult`` instead of silently substituting a fallback; the
    orchestrator applies the configured ``BoundaryPolicy``.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class BoundaryPolicy(str, Enum):
    """What the orchestrator does with a failed boundary check."""

    SUBSTITUTE = "substitute"
    REJECT = "reject"


@dataclass(frozen=True)
class BoundaryError:
    """
    A single boundary failure.

    Contract:
        Carries a machine-readable code, a human-readable message and the
        offending field. Does NOT raise -- it IS the error representation.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """
    Result of parsing one boundary value.

    Guarantees:
        - Exactly one of ``value`` / ``error`` is meaningful.
        - ``bool(result) == result.is_ok``.
    """

    value: T | None
    error: BoundaryError | None = None

    @classmethod
    def ok(cls, value: T) -> ParseResult[T]:
        return cls(value=value, error=None)

    @classmethod
    def failure(cls, error: BoundaryError) -> ParseResult[T]:
        return cls(value=None, error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value; raises ValueError on a failed result."""
        if self.error is not None:
            raise ValueError(f"{self.error.code}: {self.error.message}")
        return self.value  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.is_ok
