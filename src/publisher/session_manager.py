"""Session lifecycle for a publishing run.

This module provides the SessionLifecycleManager which owns the login
session and the test session ("reporting session") of a run. Exactly one
of each is held at a time; both are exposed to the other components
through an explicit SessionContext.
"""

import logging
from datetime import datetime, UTC
from typing import Callable, Optional

from src.models.outcome import Outcome
from src.models.session import (
    AuthSession,
    ReportingSession,
    ReportingSessionStatus,
    SessionContext,
)
from src.testbench_client.api_wrapper import TestBenchGateway

from .errors import SessionError
from .options import PublishOptions
from .remote_call import attempt

logger = logging.getLogger(__name__)


class SessionLifecycleManager:
    """Owns the AuthSession and ReportingSession of one run.

    The lifecycle is:
        1. start(): login, create the test session, join it, mark it InProgress
        2. (publishing happens, using `context`)
        3. end(): mark the test session Completed, logout

    start() may not be called again before end(). Login failures propagate
    because nothing can be published without a session; everything after
    the test session exists is best effort.

    Example:
        >>> manager = SessionLifecycleManager(gateway, options)
        >>> context = await manager.start()
        >>> ...
        >>> await manager.end()
    """

    def __init__(
        self,
        gateway: TestBenchGateway,
        options: PublishOptions,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the manager.

        Args:
            gateway: Remote gateway
            options: Run options (credentials, product, session prefix)
            clock: Returns the current time; used for the session name
        """
        self._gateway = gateway
        self._options = options
        self._clock = clock or (lambda: datetime.now(UTC))
        self.context = SessionContext()

    def session_name(self) -> str:
        """Name of a new test session: <prefix>_<ISO timestamp>."""
        return f"{self._options.session_prefix}_{self._clock().isoformat()}"

    def require_auth(self) -> AuthSession:
        """Return the current AuthSession.

        Raises:
            SessionError: If no session is held
        """
        if self.context.auth is None:
            raise SessionError("No active TestBench session; call start() first")
        return self.context.auth

    async def authenticate(self) -> AuthSession:
        """Log in without creating a test session.

        Raises:
            SessionError: If a session is already held
            InvalidCredentialsError: If the login is rejected
            APIUnreachableError: If the server cannot be reached
        """
        if self.context.is_active:
            raise SessionError("A TestBench session is already active; call end() first")

        logger.info(
            f"Logging in to {self._options.server_url} "
            f"(workspace: {self._options.workspace}, user: {self._options.username})"
        )
        auth = await self._gateway.authenticate(
            self._options.workspace,
            self._options.username,
            self._options.password,
            product_id=self._options.product_id,
        )
        self.context.auth = auth
        return auth

    async def start(self) -> SessionContext:
        """Login and open the test session of this run.

        Returns:
            SessionContext holding the AuthSession and ReportingSession

        Raises:
            SessionError: If a session is already held or the test session
                cannot be created
            InvalidCredentialsError: If the login is rejected
            APIUnreachableError: If the server cannot be reached
        """
        auth = await self.authenticate()

        name = self.session_name()
        created = await attempt(
            "create_reporting_session",
            self._gateway.create_reporting_session(auth, name),
            name=name,
        )
        if not created.is_ok:
            # no test session to report into; do not leak the login
            await self.logout()
            raise SessionError(f"Could not create test session '{name}': {created.reason}")

        session = ReportingSession(id=created.value, name=name)  # type: ignore[arg-type]
        self.context.reporting_session = session
        logger.info(f"Created test session {session.id} ({name})")

        joined = await attempt(
            "join_reporting_session",
            self._gateway.join_reporting_session(auth, session.id),
            session_id=session.id,
        )
        if not joined.is_ok:
            logger.warning(
                f"Join test session {session.id} failed; continuing without active participation"
            )

        await self._set_status(auth, session, ReportingSessionStatus.IN_PROGRESS)
        return self.context

    async def _set_status(
        self,
        auth: AuthSession,
        session: ReportingSession,
        status: ReportingSessionStatus,
    ) -> Outcome[None]:
        outcome: Outcome[None] = await attempt(
            "patch_reporting_session",
            self._gateway.patch_reporting_session(auth, session.id, {'status': status.value}),
            session_id=session.id,
            status=status.value,
        )
        if outcome.is_ok:
            session.status = status
        else:
            logger.warning(f"Failed to set test session {session.id} to {status.value}")
        return outcome

    async def end(self) -> Outcome[None]:
        """Complete the test session and logout.

        Never raises for remote failures: they are logged and returned as a
        WARN outcome. The context is cleared in every case.
        """
        if not self.context.is_active:
            logger.warning("end() called without an active TestBench session")
            return Outcome.warn("end", "no active session")

        auth = self.context.auth
        session = self.context.reporting_session
        problems = []
        try:
            if session is not None:
                completed = await self._set_status(auth, session, ReportingSessionStatus.COMPLETED)  # type: ignore[arg-type]
                if not completed.is_ok:
                    problems.append(completed)
            logged_out = await attempt("deauthenticate", self._gateway.deauthenticate(auth))  # type: ignore[arg-type]
            if not logged_out.is_ok:
                problems.append(logged_out)
        finally:
            self.context.clear()

        if problems:
            reason = "; ".join(problem.describe() for problem in problems)
            logger.error(f"Ending the TestBench session was incomplete: {reason}")
            return Outcome.warn("end", reason)

        logger.info("TestBench session ended")
        return Outcome.ok("end")

    async def logout(self) -> Outcome[None]:
        """Terminate the login without touching the test session."""
        if self.context.auth is None:
            return Outcome.warn("logout", "no active session")
        try:
            return await attempt("deauthenticate", self._gateway.deauthenticate(self.context.auth))
        finally:
            self.context.clear()
