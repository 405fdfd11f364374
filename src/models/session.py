"""Session data models.

An AuthSession is the login of one run; a ReportingSession is the remote
test session that groups every execution of that run.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ReportingSessionStatus(str, Enum):
    """Status values accepted by the test session patch endpoint."""
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


@dataclass(frozen=True)
class AuthSession:
    """Bearer-token session returned by the login endpoint."""
    access_token: str
    tenant_id: int
    product_id: int
    user_id: int


@dataclass
class ReportingSession:
    """Remote test session grouping all executions of a run."""
    id: str
    name: str
    status: Optional[ReportingSessionStatus] = None


@dataclass
class SessionContext:
    """Current login and reporting session of a run.

    Owned by the SessionLifecycleManager and handed to the synchronizer and
    reporters on every call. Both fields are None outside start()/end().
    """
    auth: Optional[AuthSession] = None
    reporting_session: Optional[ReportingSession] = None

    @property
    def is_active(self) -> bool:
        return self.auth is not None

    def clear(self) -> None:
        self.auth = None
        self.reporting_session = None
