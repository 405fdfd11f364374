"""Entry point for publishing automated test results to TestBench CS.

TestBenchAutomation composes the session lifecycle, the test case
synchronizer and the reporters. The host test runner brackets a run with
start() and end() and calls publish_automated_test() once per finished
test. A failure while publishing one test never prevents the next one
from being published, nor the session from being ended.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from src.models.outcome import Outcome
from src.models.session import SessionContext
from src.models.test_case import ResolvedTestCase, TestCaseDefinition, Verdict
from src.testbench_client.api_wrapper import TestBenchGateway

from .automation_reporter import AutomationRunReporter
from .errors import SessionError
from .execution_reporter import ExecutionReporter
from .options import PublishOptions
from .requirements import RequirementHierarchy
from .session_manager import SessionLifecycleManager
from .test_case_synchronizer import TestCaseSynchronizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishResult:
    """Outcome of publishing one definition."""
    external_id: Optional[str]
    outcome: Outcome


class TestBenchAutomation:
    """Publishes the results of an automated test run.

    Example:
        >>> automation = TestBenchAutomation(options)
        >>> await automation.start()
        >>> await automation.publish_automated_test(definition, Verdict.PASSED)
        >>> await automation.end()

    Or in one call, with end() guaranteed:
        >>> results = await automation.run([(definition, Verdict.PASSED)])
    """

    __test__ = False

    def __init__(
        self,
        options: PublishOptions,
        gateway: Optional[TestBenchGateway] = None,
        session_manager: Optional[SessionLifecycleManager] = None,
        synchronizer: Optional[TestCaseSynchronizer] = None,
        reporter: Optional[ExecutionReporter] = None,
        automation_reporter: Optional[AutomationRunReporter] = None,
    ):
        """Initialize with options and optional collaborators.

        Args:
            options: Run options
            gateway: Remote gateway (created from options if omitted)
            session_manager: Session lifecycle (optional, for testing)
            synchronizer: Test case synchronizer (optional, for testing)
            reporter: Execution reporter (optional, for testing)
            automation_reporter: Automation run reporter (optional, for testing)
        """
        self.options = options
        self.gateway = gateway or TestBenchGateway(
            options.server_url,
            timeout=options.timeout,
            verify_tls=options.verify_tls,
        )
        self.session_manager = session_manager or SessionLifecycleManager(self.gateway, options)
        self.synchronizer = synchronizer or TestCaseSynchronizer(self.gateway, options)
        self.reporter = reporter or ExecutionReporter(self.gateway)
        self.automation_reporter = automation_reporter or AutomationRunReporter(self.gateway, options)

    @property
    def context(self) -> SessionContext:
        return self.session_manager.context

    async def start(self) -> SessionContext:
        """Login and open the test session; failures propagate."""
        return await self.session_manager.start()

    async def end(self) -> Outcome[None]:
        """Complete the test session and logout; failures are only logged."""
        return await self.session_manager.end()

    async def publish_automated_test(
        self,
        definition: TestCaseDefinition,
        verdict: Verdict,
    ) -> PublishResult:
        """Publish the result of one automated test.

        Args:
            definition: Local test case definition
            verdict: Overall verdict of the test

        Returns:
            PublishResult with the outcome of this publish

        Raises:
            SessionError: If called outside start()/end()
        """
        if not self.context.is_active:
            raise SessionError("publish_automated_test() called outside start()/end()")

        logger.info(f"Publishing {definition.external_id} ({definition.display_name}): {verdict.value}")
        try:
            outcome = await self._publish(definition, verdict)
        except Exception as e:
            logger.exception(f"Unexpected error publishing {definition.external_id}")
            outcome = Outcome.fail(
                "publish_automated_test",
                f"{type(e).__name__}: {e}",
                external_id=definition.external_id,
            )

        if outcome.is_fail:
            logger.error(f"Publishing {definition.external_id} failed: {outcome.describe()}")
        elif outcome.is_warn:
            logger.warning(f"Publishing {definition.external_id} skipped: {outcome.describe()}")
        return PublishResult(external_id=definition.external_id, outcome=outcome)

    async def _publish(self, definition: TestCaseDefinition, verdict: Verdict) -> Outcome:
        if self.options.use_automation_runs:
            return await self.automation_reporter.publish(self.context, definition, verdict)

        resolved = await self.synchronizer.resolve(self.context, definition)
        if not resolved.is_ok:
            return resolved
        return await self.reporter.report(self.context, resolved.value, verdict)  # type: ignore[arg-type]

    async def run(self, results: Iterable[Tuple[TestCaseDefinition, Verdict]]) -> List[PublishResult]:
        """Publish all results between start() and end().

        end() runs even when a publish raised; start() failures propagate
        before anything is published.
        """
        await self.start()
        published: List[PublishResult] = []
        try:
            for definition, verdict in results:
                published.append(await self.publish_automated_test(definition, verdict))
        finally:
            await self.end()
        return published

    async def sync_test_cases(
        self,
        user_stories: Iterable[Tuple[str, Sequence[TestCaseDefinition]]],
        epic_name: Optional[str] = None,
    ) -> List[PublishResult]:
        """Create or update test cases without reporting results.

        Used to import test specifications before any run. Only a login
        session is opened; no test session is created.

        Args:
            user_stories: (user story name, definitions) per spec suite
            epic_name: Epic that new test cases are filed below through
                their user story; None files them below no requirement
        """
        hierarchy = RequirementHierarchy(self.gateway, epic_name) if epic_name else None
        await self.session_manager.authenticate()
        synced: List[PublishResult] = []
        try:
            for user_story_name, definitions in user_stories:
                user_story = (
                    functools.partial(hierarchy.user_story_id, name=user_story_name) if hierarchy else None
                )
                for definition in definitions:
                    try:
                        outcome: Outcome[ResolvedTestCase] = await self.synchronizer.resolve(
                            self.context, definition, user_story
                        )
                    except Exception as e:
                        logger.exception(f"Unexpected error importing {definition.external_id}")
                        outcome = Outcome.fail(
                            "resolve", f"{type(e).__name__}: {e}", external_id=definition.external_id
                        )
                    synced.append(PublishResult(external_id=definition.external_id, outcome=outcome))
        finally:
            await self.session_manager.logout()
        return synced
