"""Execution data models."""

from dataclasses import dataclass
from enum import Enum

from src.models.test_case import Verdict


class ExecutionStatus(str, Enum):
    """Valid execution status values."""
    NEW = "New"
    IN_PROGRESS = "InProgress"
    BLOCKED = "Blocked"
    PAUSED = "Paused"
    FINISHED = "Finished"
    CLOSED = "Closed"


@dataclass(frozen=True)
class StepResult:
    """Verdict assigned to one remote test step of an execution."""
    step_id: str
    verdict: Verdict
