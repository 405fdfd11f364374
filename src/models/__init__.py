"""Data models for test cases, sessions, executions and outcomes."""

from src.models.execution import ExecutionStatus, StepResult
from src.models.outcome import Outcome, OutcomeKind, summarize
from src.models.session import (
    AuthSession,
    ReportingSession,
    ReportingSessionStatus,
    SessionContext,
)
from src.models.test_case import (
    RemoteTestCase,
    RemoteTestStep,
    ResolvedTestCase,
    TestCaseDefinition,
    Verdict,
)

__all__ = [
    'AuthSession',
    'ExecutionStatus',
    'Outcome',
    'OutcomeKind',
    'RemoteTestCase',
    'RemoteTestStep',
    'ReportingSession',
    'ReportingSessionStatus',
    'ResolvedTestCase',
    'SessionContext',
    'StepResult',
    'TestCaseDefinition',
    'Verdict',
    'summarize',
]
