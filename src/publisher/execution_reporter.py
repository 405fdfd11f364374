"""Report the result of an automated test as a TestBench execution.

For every publish a new execution is created, linked into the test session
of the run, set InProgress, filled with step results (or an aggregate
result) and finally set Finished.
"""

import logging
from typing import List, Sequence

from src.models.execution import ExecutionStatus, StepResult
from src.models.outcome import Outcome
from src.models.session import AuthSession, SessionContext
from src.models.test_case import RemoteTestStep, ResolvedTestCase, Verdict
from src.testbench_client.api_wrapper import TestBenchGateway

from .errors import SessionError
from .remote_call import attempt, report_folded

logger = logging.getLogger(__name__)


def build_step_results(steps: Sequence[RemoteTestStep], verdict: Verdict) -> List[StepResult]:
    """Assign a verdict to every step.

    All steps pass; for a failed test the last step carries the failure.
    The failing step is not identified, the test is only known to have
    stopped after the last observed step.

    Example:
        >>> steps = [RemoteTestStep("1", "open"), RemoteTestStep("2", "check")]
        >>> [r.verdict.value for r in build_step_results(steps, Verdict.FAILED)]
        ['Passed', 'Failed']
    """
    results = [StepResult(step_id=step.id, verdict=Verdict.PASSED) for step in steps]
    if verdict is Verdict.FAILED and results:
        results[-1] = StepResult(step_id=results[-1].step_id, verdict=Verdict.FAILED)
    return results


class ExecutionReporter:
    """Creates and completes one execution per published test."""

    def __init__(self, gateway: TestBenchGateway):
        self._gateway = gateway

    async def report(
        self,
        context: SessionContext,
        resolved: ResolvedTestCase,
        verdict: Verdict,
    ) -> Outcome[str]:
        """Report a verdict against a resolved test case.

        Args:
            context: Session context of the run
            resolved: Output of the synchronizer
            verdict: Overall verdict of the local test

        Returns:
            OK with the execution id, or FAIL when the execution could not be
            created, started or finished. An execution that was started but
            not finished is left InProgress.

        Raises:
            SessionError: If the context holds no AuthSession
        """
        if context.auth is None:
            raise SessionError("report() requires an active TestBench session")
        auth = context.auth
        test_case_id = resolved.test_case_id

        created = await attempt(
            "create_execution",
            self._gateway.create_execution(auth, test_case_id),
            test_case_id=test_case_id,
        )
        if not created.is_ok:
            return Outcome.fail("report", created.reason, test_case_id=test_case_id)
        execution_id: str = created.value  # type: ignore[assignment]

        await self._link(context, test_case_id, execution_id)

        started = await attempt(
            "set_execution_status",
            self._gateway.set_execution_status(auth, test_case_id, execution_id, ExecutionStatus.IN_PROGRESS),
            test_case_id=test_case_id,
            execution_id=execution_id,
        )
        if not started.is_ok:
            return Outcome.fail("report", started.reason, test_case_id=test_case_id, execution_id=execution_id)

        if not resolved.steps_reconciled:
            aggregate = await self._report_unreconciled(auth, test_case_id, execution_id, verdict)
            if not aggregate.is_ok:
                return self._left_in_progress(aggregate, test_case_id, execution_id)
        elif not resolved.steps:
            aggregate = await self._set_result(auth, test_case_id, execution_id, verdict)
            if not aggregate.is_ok:
                return self._left_in_progress(aggregate, test_case_id, execution_id)
        else:
            await self._report_steps(auth, test_case_id, execution_id, resolved.steps, verdict)

        finished = await attempt(
            "set_execution_status",
            self._gateway.set_execution_status(auth, test_case_id, execution_id, ExecutionStatus.FINISHED),
            test_case_id=test_case_id,
            execution_id=execution_id,
        )
        if not finished.is_ok:
            return self._left_in_progress(finished, test_case_id, execution_id)

        logger.info(f"Execution {execution_id} of test case {test_case_id} finished: {verdict.value}")
        return Outcome.ok("report", execution_id, test_case_id=test_case_id, execution_id=execution_id)

    async def _link(self, context: SessionContext, test_case_id: str, execution_id: str) -> None:
        session = context.reporting_session
        if session is None:
            logger.warning(f"No test session to add execution {execution_id} to")
            return
        linked = await attempt(
            "link_execution_to_session",
            self._gateway.link_execution_to_session(context.auth, session.id, test_case_id, execution_id),  # type: ignore[arg-type]
            session_id=session.id,
            test_case_id=test_case_id,
            execution_id=execution_id,
        )
        if not linked.is_ok:
            logger.warning(f"Adding execution {execution_id} to test session {session.id} failed")

    async def _set_result(
        self,
        auth: AuthSession,
        test_case_id: str,
        execution_id: str,
        verdict: Verdict,
    ) -> Outcome[None]:
        return await attempt(
            "set_execution_result",
            self._gateway.set_execution_result(auth, test_case_id, execution_id, verdict),
            test_case_id=test_case_id,
            execution_id=execution_id,
            verdict=verdict.value,
        )

    async def _report_unreconciled(
        self,
        auth: AuthSession,
        test_case_id: str,
        execution_id: str,
        verdict: Verdict,
    ) -> Outcome[None]:
        # remote steps do not match what ran; only the test case result is reported
        flagged = await attempt(
            "patch_test_case",
            self._gateway.patch_test_case(auth, test_case_id, {'toBeReviewed': True}),
            test_case_id=test_case_id,
        )
        if not flagged.is_ok:
            logger.warning(f"Could not flag test case {test_case_id} for review")
        return await self._set_result(auth, test_case_id, execution_id, verdict)

    async def _report_steps(
        self,
        auth: AuthSession,
        test_case_id: str,
        execution_id: str,
        steps: Sequence[RemoteTestStep],
        verdict: Verdict,
    ) -> List[Outcome[None]]:
        outcomes: List[Outcome[None]] = []
        for result in build_step_results(steps, verdict):
            outcomes.append(await attempt(
                "set_step_result",
                self._gateway.set_step_result(auth, test_case_id, execution_id, result.step_id, result.verdict),
                step_id=result.step_id,
                verdict=result.verdict.value,
            ))
        report_folded("set_step_result", outcomes, test_case_id=test_case_id, execution_id=execution_id)
        return outcomes

    @staticmethod
    def _left_in_progress(cause: Outcome, test_case_id: str, execution_id: str) -> Outcome[str]:
        logger.error(f"Execution {execution_id} of test case {test_case_id} is left InProgress")
        return Outcome.fail(
            "report",
            f"{cause.reason} (execution left InProgress)",
            test_case_id=test_case_id,
            execution_id=execution_id,
        )
