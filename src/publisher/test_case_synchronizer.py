"""Reconcile local test case definitions with TestBench test cases.

The external id is the reconciliation key. A definition either resolves to
an existing test case (whose "Test" step block is rebuilt when it drifted
from the local step list) or leads to a new structured test case. The
result is the remote test case id together with the step ids results may
be reported against.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from src.models.outcome import Outcome
from src.models.session import AuthSession, SessionContext
from src.models.test_case import (
    RemoteTestCase,
    RemoteTestStep,
    ResolvedTestCase,
    TestCaseDefinition,
)
from src.testbench_client.api_wrapper import STRUCTURED_TEST_CASE, TestBenchGateway

from .errors import SessionError
from .options import PublishOptions
from .remote_call import attempt, report_folded

logger = logging.getLogger(__name__)

UserStoryLookup = Callable[[AuthSession], Awaitable[Optional[str]]]


def has_changed(local: Sequence[str], remote: Sequence[str]) -> bool:
    """Return True when the local step texts differ from the remote ones.

    Lengths and texts are compared position by position; the comparison is
    exact and case-sensitive.

    Example:
        >>> has_changed(["open", "click"], ["open", "Click"])
        True
    """
    if len(local) != len(remote):
        return True
    return any(local_text != remote_text for local_text, remote_text in zip(local, remote))


class TestCaseSynchronizer:
    """Resolves a TestCaseDefinition to a remote test case.

    Decision table for resolve():

        lookup matches | skip updates | steps drifted | action
        ---------------|--------------|---------------|-------------------------------
        0              | no           | -             | create test case and steps
        0              | yes          | -             | WARN, nothing is created
        1              | -            | no            | reuse remote steps
        1              | no           | yes           | delete + recreate steps, flag review
        1              | yes          | yes           | keep remote steps, steps_reconciled=False
        2+             | -            | -             | WARN (ambiguous), nothing is created

    Failures of single step deletions or creations do not abort the
    reconciliation; they are collected and logged once per loop.
    """

    __test__ = False

    def __init__(self, gateway: TestBenchGateway, options: PublishOptions):
        self._gateway = gateway
        self._options = options

    def _updates_allowed(self, definition: TestCaseDefinition) -> bool:
        return not self._options.skip_test_case_updates and definition.overwrite

    async def resolve(
        self,
        context: SessionContext,
        definition: TestCaseDefinition,
        user_story: Optional[UserStoryLookup] = None,
    ) -> Outcome[ResolvedTestCase]:
        """Resolve a definition to (test case id, current remote steps).

        Args:
            context: Session context of the run
            definition: Local test case definition
            user_story: Returns the user story a newly created test case is
                filed below; only awaited when a test case is created

        Returns:
            OK with a ResolvedTestCase, WARN when the publish has to be
            skipped on purpose, FAIL when a remote call needed for the
            decision failed

        Raises:
            SessionError: If the context holds no AuthSession
        """
        if context.auth is None:
            raise SessionError("resolve() requires an active TestBench session")
        auth = context.auth

        external_id = definition.external_id
        if not external_id:
            logger.warning(f"Test case '{definition.display_name}' has no external id; publish skipped")
            return Outcome.warn("resolve", "definition has no external id", name=definition.display_name)

        lookup = await attempt(
            "find_test_cases_by_external_id",
            self._gateway.find_test_cases_by_external_id(auth, external_id),
            external_id=external_id,
        )
        if not lookup.is_ok:
            return Outcome.fail("resolve", lookup.reason, external_id=external_id)

        matches: List[str] = lookup.value or []
        if len(matches) > 1:
            logger.warning(
                f"External id {external_id} matches {len(matches)} test cases "
                f"({', '.join(matches)}); publish skipped"
            )
            return Outcome.warn(
                "resolve",
                f"ambiguous external id ({len(matches)} matches)",
                external_id=external_id,
                test_case_ids=",".join(matches),
            )

        if not matches:
            return await self._create(auth, definition, user_story)
        return await self._reconcile(auth, definition, matches[0])

    def _details(
        self,
        auth: AuthSession,
        definition: TestCaseDefinition,
        to_be_reviewed: bool,
        include_external_id: bool,
    ) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            'description': {'text': definition.description or None},
            'responsibles': [auth.user_id],
            'isAutomated': True,
            'toBeReviewed': to_be_reviewed,
        }
        if include_external_id:
            fields['externalId'] = {'value': definition.external_id}
        return fields

    async def _create(
        self,
        auth: AuthSession,
        definition: TestCaseDefinition,
        user_story: Optional[UserStoryLookup] = None,
    ) -> Outcome[ResolvedTestCase]:
        external_id = definition.external_id
        if self._options.skip_test_case_updates:
            logger.warning(
                f"Test case {external_id} does not exist and test case updates are "
                f"disabled; result import skipped"
            )
            return Outcome.warn(
                "resolve",
                "test case not found and test case updates are disabled",
                external_id=external_id,
            )

        user_story_id = await user_story(auth) if user_story else None
        created = await attempt(
            "create_test_case",
            self._gateway.create_test_case(
                auth, definition.display_name, STRUCTURED_TEST_CASE, user_story_id=user_story_id
            ),
            external_id=external_id,
        )
        if not created.is_ok:
            return Outcome.fail("resolve", created.reason, external_id=external_id)
        test_case_id: str = created.value  # type: ignore[assignment]
        logger.info(f"Created test case {test_case_id} for {external_id}")

        patched = await attempt(
            "patch_test_case",
            self._gateway.patch_test_case(
                auth,
                test_case_id,
                self._details(auth, definition, definition.mark_for_review, include_external_id=True),
            ),
            external_id=external_id,
            test_case_id=test_case_id,
        )
        if not patched.is_ok:
            logger.warning(
                f"Test case {test_case_id} was created for {external_id} but its details could not be "
                f"set; the next run will not find it and creates another one"
            )

        marker = await attempt(
            "set_precondition_empty_marker",
            self._gateway.set_precondition_empty_marker(auth, test_case_id, True),
            test_case_id=test_case_id,
        )
        if not marker.is_ok:
            logger.warning(f"Could not mark preconditions of test case {test_case_id} as empty")

        steps = await self._create_steps(auth, test_case_id, definition.test_steps)
        return Outcome.ok(
            "resolve",
            ResolvedTestCase(test_case_id=test_case_id, steps=steps, created=True),
            external_id=external_id,
            test_case_id=test_case_id,
        )

    async def _reconcile(
        self,
        auth: AuthSession,
        definition: TestCaseDefinition,
        test_case_id: str,
    ) -> Outcome[ResolvedTestCase]:
        external_id = definition.external_id
        fetched = await attempt(
            "fetch_test_case",
            self._gateway.fetch_test_case(auth, test_case_id),
            external_id=external_id,
            test_case_id=test_case_id,
        )
        if not fetched.is_ok:
            return Outcome.fail("resolve", fetched.reason, external_id=external_id, test_case_id=test_case_id)
        remote: RemoteTestCase = fetched.value  # type: ignore[assignment]

        if not has_changed(definition.test_steps, remote.step_texts):
            logger.info(f"Test case {test_case_id} ({external_id}) is up to date")
            return Outcome.ok(
                "resolve",
                ResolvedTestCase(test_case_id=test_case_id, steps=list(remote.steps)),
                external_id=external_id,
                test_case_id=test_case_id,
            )

        if not self._updates_allowed(definition):
            logger.warning(
                f"Steps of test case {test_case_id} ({external_id}) differ from the local "
                f"definition but updates are disabled; only the test case result is reported"
            )
            return Outcome.ok(
                "resolve",
                ResolvedTestCase(
                    test_case_id=test_case_id,
                    steps=list(remote.steps),
                    steps_reconciled=False,
                ),
                external_id=external_id,
                test_case_id=test_case_id,
            )

        logger.info(
            f"Steps of test case {test_case_id} ({external_id}) changed: "
            f"{len(remote.steps)} remote, {len(definition.test_steps)} local"
        )
        await self._delete_steps(auth, test_case_id, remote.steps)
        steps = await self._create_steps(auth, test_case_id, definition.test_steps)

        # changed specification has to be re-validated by a human
        patched = await attempt(
            "patch_test_case",
            self._gateway.patch_test_case(
                auth,
                test_case_id,
                self._details(auth, definition, True, include_external_id=False),
            ),
            external_id=external_id,
            test_case_id=test_case_id,
        )
        if not patched.is_ok:
            logger.warning(f"Steps of test case {test_case_id} were updated but its details were not")

        return Outcome.ok(
            "resolve",
            ResolvedTestCase(test_case_id=test_case_id, steps=steps),
            external_id=external_id,
            test_case_id=test_case_id,
        )

    async def _delete_steps(
        self,
        auth: AuthSession,
        test_case_id: str,
        steps: Sequence[RemoteTestStep],
    ) -> List[Outcome[None]]:
        outcomes: List[Outcome[None]] = []
        for step in steps:
            outcomes.append(await attempt(
                "delete_test_step",
                self._gateway.delete_test_step(auth, test_case_id, step.id),
                step_id=step.id,
            ))
        report_folded("delete_test_step", outcomes, test_case_id=test_case_id)
        return outcomes

    async def _create_steps(
        self,
        auth: AuthSession,
        test_case_id: str,
        texts: Sequence[str],
    ) -> List[RemoteTestStep]:
        """Create steps in local order; steps that failed are left out."""
        created: List[Tuple[str, Outcome[str]]] = []
        for text in texts:
            created.append((text, await attempt(
                "create_test_step",
                self._gateway.create_test_step(auth, test_case_id, text),
                text=text,
            )))
        report_folded("create_test_step", [outcome for _, outcome in created], test_case_id=test_case_id)
        return [
            RemoteTestStep(id=outcome.value, text=text)  # type: ignore[arg-type]
            for text, outcome in created
            if outcome.is_ok
        ]
