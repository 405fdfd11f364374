"""Tagged result type for remote operations.

Publishing is best effort: many remote failures are downgraded to warnings
and the run continues. Instead of swallowing exceptions, components return
an Outcome and the orchestrator decides what to do with it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar('T')


class OutcomeKind(str, Enum):
    OK = "ok"
    WARN = "warn"
    FAIL = "fail"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an operation: Ok(value), Warn(reason) or Fail(reason).

    Attributes:
        kind: Which of the three cases this is
        operation: Name of the operation that produced the outcome
        value: Result value (only meaningful for OK)
        reason: Human readable reason (WARN and FAIL)
        context: Identifiers involved, for diagnostics

    Example:
        >>> outcome = Outcome.ok("create_execution", "42")
        >>> outcome.is_ok
        True
    """
    kind: OutcomeKind
    operation: str
    value: Optional[T] = None
    reason: str = ""
    context: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, operation: str, value: Optional[T] = None, **context: Any) -> 'Outcome[T]':
        return cls(OutcomeKind.OK, operation, value=value, context=context)

    @classmethod
    def warn(cls, operation: str, reason: str, **context: Any) -> 'Outcome[T]':
        return cls(OutcomeKind.WARN, operation, reason=reason, context=context)

    @classmethod
    def fail(cls, operation: str, reason: str, **context: Any) -> 'Outcome[T]':
        return cls(OutcomeKind.FAIL, operation, reason=reason, context=context)

    @property
    def is_ok(self) -> bool:
        return self.kind is OutcomeKind.OK

    @property
    def is_warn(self) -> bool:
        return self.kind is OutcomeKind.WARN

    @property
    def is_fail(self) -> bool:
        return self.kind is OutcomeKind.FAIL

    def describe(self) -> str:
        """Render the outcome for log messages."""
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        text = f"{self.operation}: {self.kind.value}"
        if self.reason:
            text += f" ({self.reason})"
        if details:
            text += f" [{details}]"
        return text


def summarize(outcomes: List[Outcome[Any]]) -> Dict[OutcomeKind, int]:
    """Count outcomes per kind."""
    counts = {kind: 0 for kind in OutcomeKind}
    for outcome in outcomes:
        counts[outcome.kind] += 1
    return counts
