"""Publish a test through a single automation run resource.

Some deployments accept the whole test case and its result as one
automation run instead of the execution protocol. The service rejects a
new run while another one is still open for the same external id; such a
stale run can be closed and the publish repeated once.
"""

import logging

from src.models.outcome import Outcome
from src.models.session import SessionContext
from src.models.test_case import TestCaseDefinition, Verdict
from src.testbench_client.api_wrapper import TestBenchGateway
from src.testbench_client.errors import ConflictError, TestBenchError

from .errors import SessionError
from .options import PublishOptions
from .remote_call import attempt

logger = logging.getLogger(__name__)

# A conflicting run is closed and the publish retried at most this often
MAX_CONFLICT_RETRIES = 1


class AutomationRunReporter:
    """Publishes definition and verdict as one automation run."""

    def __init__(self, gateway: TestBenchGateway, options: PublishOptions):
        self._gateway = gateway
        self._options = options

    async def publish(
        self,
        context: SessionContext,
        definition: TestCaseDefinition,
        verdict: Verdict,
    ) -> Outcome[str]:
        """Start the automation run, closing a stale one if configured.

        Returns:
            OK with the run id; WARN when a conflict is not resolved because
            close_already_running_automation is off; FAIL otherwise

        Raises:
            SessionError: If the context holds no AuthSession
        """
        if context.auth is None:
            raise SessionError("publish() requires an active TestBench session")
        auth = context.auth

        external_id = definition.external_id
        if not external_id:
            logger.warning(f"Test case '{definition.display_name}' has no external id; publish skipped")
            return Outcome.warn("automation_run", "definition has no external id", name=definition.display_name)

        retries = 0
        while True:
            try:
                run_id = await self._gateway.start_automation_run(auth, definition, verdict)
            except ConflictError as e:
                if not self._options.close_already_running_automation:
                    logger.warning(
                        f"An automation for {external_id} is already running; publish abandoned"
                    )
                    return Outcome.warn("automation_run", str(e), external_id=external_id)
                if retries >= MAX_CONFLICT_RETRIES:
                    logger.error(
                        f"An automation for {external_id} is still running after closing it "
                        f"{retries} time(s); publish abandoned"
                    )
                    return Outcome.fail("automation_run", str(e), external_id=external_id, retries=retries)

                retries += 1
                logger.warning(
                    f"An automation for {external_id} is already running; closing it "
                    f"(retry {retries}/{MAX_CONFLICT_RETRIES})"
                )
                closed = await attempt(
                    "terminate_running_automation",
                    self._gateway.terminate_running_automation(auth, external_id, Verdict.CALCULATED),
                    external_id=external_id,
                )
                if not closed.is_ok:
                    return Outcome.fail("automation_run", closed.reason, external_id=external_id)
                continue
            except TestBenchError as e:
                logger.error(f"automation_run failed for {external_id}: {e}")
                return Outcome.fail("automation_run", str(e), external_id=external_id)

            logger.info(f"Automation run {run_id} for {external_id} published: {verdict.value}")
            return Outcome.ok("automation_run", run_id, external_id=external_id, retries=retries)
