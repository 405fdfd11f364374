"""Async gateway for the TestBench CS REST API.

This module wraps a requests session and provides one coroutine per remote
operation the publisher needs. Every request is executed in a worker thread
so that callers awaiting the gateway never block the host event loop.
HTTP failures are translated into the typed exception hierarchy; the
gateway itself holds no business logic.
"""

import asyncio
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from src.models.session import AuthSession
from src.models.test_case import RemoteTestCase, RemoteTestStep, TestCaseDefinition, Verdict
from src.models.execution import ExecutionStatus

from .errors import (
    APIUnreachableError,
    ConflictError,
    InvalidCredentialsError,
    InvalidIdentifierError,
    MalformedResponseError,
    ResourceNotFoundError,
    TestBenchError,
    UnexpectedStatusError,
)

logger = logging.getLogger(__name__)

# Step block holding the executable steps of a structured test case
TEST_STEP_BLOCK = "Test"

STRUCTURED_TEST_CASE = "StructuredTestCase"

_NO_BODY = object()


def sanitize(text: str) -> str:
    """Mask credentials in error messages and logged response bodies.

    Example:
        >>> sanitize('{"sessionToken": "abc123"}')
        '{"sessionToken": "***REDACTED***"}'
    """
    if not text:
        return text

    sanitized = text

    # user:pass@host in URLs
    sanitized = re.sub(r'://([\w.-]+):([\w.-]+)@', r'://***:***@', sanitized)

    sanitized = re.sub(
        r'Authorization:\s*[^\n\r]+',
        'Authorization: ***REDACTED***',
        sanitized,
        flags=re.IGNORECASE
    )
    sanitized = re.sub(
        r'Bearer\s+[^\s\n\r"\']+',
        'Bearer ***REDACTED***',
        sanitized,
        flags=re.IGNORECASE
    )

    # JSON fields: "password": "x", "sessionToken": "x", "accessToken": "x"
    sanitized = re.sub(
        r'"(password|sessionToken|accessToken|token)"\s*:\s*"[^"]*"',
        r'"\1": "***REDACTED***"',
        sanitized,
        flags=re.IGNORECASE
    )

    # form style: password=x, token=x
    sanitized = re.sub(
        r'\b(password|api_?token|token)=([^"\'\s&]+)',
        r'\1=***REDACTED***',
        sanitized,
        flags=re.IGNORECASE
    )

    return sanitized


class TestBenchGateway:
    """Typed operations against the TestBench CS REST API.

    Authenticated operations take the AuthSession as their first argument;
    the gateway keeps no session state of its own.

    Example:
        >>> gateway = TestBenchGateway("https://testbench.example.com")
        >>> auth = await gateway.authenticate("workspace", "user", "secret", product_id=4)
        >>> ids = await gateway.find_test_cases_by_external_id(auth, "CY-LOGIN-01")
    """

    __test__ = False

    def __init__(
        self,
        server_url: str,
        timeout: float = 30,
        verify_tls: bool = True,
        http_session: Optional[requests.Session] = None,
    ):
        """Initialize the gateway.

        Args:
            server_url: TestBench server address (without the /api suffix)
            timeout: Per-request timeout in seconds
            verify_tls: Verify server certificates
            http_session: Optional requests session (injected by tests)
        """
        self.server_url = server_url.rstrip('/')
        self._base = f"{self.server_url}/api"
        self._timeout = timeout
        self._verify_tls = verify_tls
        self._http = http_session or requests.Session()

    # -- plumbing -----------------------------------------------------------

    @staticmethod
    def _validate_id(value: Any, name: str) -> str:
        """Validate a remote identifier before it is placed in a URL path.

        TestBench identifiers are numeric; anything else is rejected so that
        no caller-supplied text ends up in a request path.

        Raises:
            InvalidIdentifierError: If the id is empty or not numeric
        """
        text = str(value).strip() if value is not None else ""
        if not re.match(r'^\d+$', text):
            raise InvalidIdentifierError(name, value)
        return text

    def _tenant_url(self, auth: AuthSession, suffix: str) -> str:
        return f"{self._base}/tenants/{auth.tenant_id}/{suffix}"

    def _product_url(self, auth: AuthSession, suffix: str) -> str:
        return self._tenant_url(auth, f"products/{auth.product_id}/{suffix}")

    def _session_url(self, auth: AuthSession, suffix: str) -> str:
        return self._product_url(auth, f"planning/sessions{suffix}")

    def _test_case_url(self, auth: AuthSession, test_case_id: str, suffix: str = "") -> str:
        test_case_id = self._validate_id(test_case_id, "test_case_id")
        return self._product_url(auth, f"specifications/testCases/{test_case_id}{suffix}")

    def _execution_url(
        self,
        auth: AuthSession,
        test_case_id: str,
        execution_id: str,
        suffix: str,
    ) -> str:
        test_case_id = self._validate_id(test_case_id, "test_case_id")
        execution_id = self._validate_id(execution_id, "execution_id")
        return self._product_url(
            auth,
            f"executions/testCases/{test_case_id}/executions/{execution_id}{suffix}"
        )

    async def _request(
        self,
        method: str,
        url: str,
        operation: str,
        expected: Iterable[int],
        auth: Optional[AuthSession] = None,
        payload: Any = _NO_BODY,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Send one request off the event loop and return the decoded body."""
        logger.info(f"TestBenchGateway.{operation}")
        return await asyncio.to_thread(
            self._send, method, url, operation, tuple(expected), auth, payload, params
        )

    def _send(
        self,
        method: str,
        url: str,
        operation: str,
        expected: Tuple[int, ...],
        auth: Optional[AuthSession],
        payload: Any,
        params: Optional[Dict[str, str]],
    ) -> Any:
        headers = {'Content-Type': 'application/json'}
        if auth is not None:
            headers['Authorization'] = f"Bearer {auth.access_token}"

        kwargs: Dict[str, Any] = {
            'headers': headers,
            'timeout': self._timeout,
            'verify': self._verify_tls,
        }
        if payload is not _NO_BODY:
            kwargs['json'] = payload
        if params:
            kwargs['params'] = params

        try:
            response = self._http.request(method, url, **kwargs)
        except (Timeout, ConnectionError) as e:
            raise APIUnreachableError(endpoint=self.server_url) from e
        except RequestException as e:
            raise TestBenchError(
                f"Request failed during {operation}: {sanitize(str(e))}"
            ) from e

        if response.status_code in expected:
            body = self._decode(response)
            logger.debug(f"{operation} -> {response.status_code} {sanitize(str(body))}")
            return body

        raise self._translate_status(response, operation)

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _translate_status(self, response: requests.Response, operation: str) -> TestBenchError:
        """Translate an unexpected HTTP status to a typed exception.

        Args:
            response: The response with the unexpected status
            operation: Description of the operation (for logging)

        Returns:
            TestBenchError: One of the typed exceptions
        """
        status_code = response.status_code
        detail = sanitize(response.text or "")

        if status_code == 401:
            return InvalidCredentialsError(user="session", endpoint=self.server_url)
        if status_code == 404:
            return ResourceNotFoundError(operation)
        if status_code == 409:
            return ConflictError(operation, detail)

        logger.error(f"API operation failed: {operation} - {status_code} {detail}")
        return UnexpectedStatusError(operation, status_code, detail)

    @staticmethod
    def _field(body: Any, name: str, operation: str) -> Any:
        if not isinstance(body, dict) or body.get(name) is None:
            raise MalformedResponseError(operation, name)
        return body[name]

    # -- login --------------------------------------------------------------

    async def authenticate(
        self,
        workspace: str,
        user: str,
        password: str,
        product_id: int,
    ) -> AuthSession:
        """Log in and exchange the password for a bearer token.

        Raises:
            InvalidCredentialsError: If the login is rejected
            APIUnreachableError: If the server cannot be reached
        """
        operation = f"authenticate({workspace}, {user})"
        try:
            body = await self._request(
                'POST',
                f"{self._base}/tenants/login/session",
                operation,
                expected=(200, 201),
                payload={
                    'tenantName': workspace,
                    'force': True,
                    'login': user,
                    'password': password,
                },
            )
        except (InvalidCredentialsError, ResourceNotFoundError) as e:
            raise InvalidCredentialsError(user=user, endpoint=self.server_url) from e

        return AuthSession(
            access_token=self._field(body, 'sessionToken', operation),
            tenant_id=self._field(body, 'tenantId', operation),
            product_id=product_id,
            user_id=self._field(body, 'userId', operation),
        )

    async def deauthenticate(self, auth: AuthSession) -> None:
        """Terminate the login session."""
        await self._request(
            'DELETE',
            self._tenant_url(auth, "login/session"),
            "deauthenticate()",
            expected=(200, 204),
            auth=auth,
        )

    # -- test sessions ------------------------------------------------------

    async def create_reporting_session(self, auth: AuthSession, name: str) -> str:
        """Create a test session and return its id."""
        operation = f"create_reporting_session({name})"
        body = await self._request(
            'POST',
            self._session_url(auth, "/v1"),
            operation,
            expected=(200, 201),
            auth=auth,
            payload={'name': name},
        )
        return str(self._field(body, 'testSessionId', operation))

    async def join_reporting_session(self, auth: AuthSession, session_id: str) -> None:
        """Join a test session as active participant."""
        session_id = self._validate_id(session_id, "session_id")
        await self._request(
            'PATCH',
            self._session_url(auth, f"/{session_id}/participant/self/v1"),
            f"join_reporting_session({session_id})",
            expected=(200,),
            auth=auth,
            payload={'active': True},
        )

    async def patch_reporting_session(
        self,
        auth: AuthSession,
        session_id: str,
        patch: Dict[str, Any],
    ) -> None:
        """Patch test session fields, e.g. {'status': 'Completed'}."""
        session_id = self._validate_id(session_id, "session_id")
        await self._request(
            'PATCH',
            self._session_url(auth, f"/{session_id}/v1"),
            f"patch_reporting_session({session_id}, {patch})",
            expected=(200, 201, 204),
            auth=auth,
            payload=patch,
        )

    async def link_execution_to_session(
        self,
        auth: AuthSession,
        session_id: str,
        test_case_id: str,
        execution_id: str,
    ) -> None:
        """Assign an execution of a test case to a test session."""
        session_id = self._validate_id(session_id, "session_id")
        await self._request(
            'PATCH',
            self._session_url(auth, f"/{session_id}/assign/executions/v1"),
            f"link_execution_to_session({session_id}, {test_case_id}, {execution_id})",
            expected=(200, 201, 204),
            auth=auth,
            payload={
                'addExecutions': [{
                    'testCaseIds': {'testCaseId': int(self._validate_id(test_case_id, "test_case_id"))},
                    'executionId': int(self._validate_id(execution_id, "execution_id")),
                }],
            },
        )

    # -- requirements ---------------------------------------------------------

    async def create_epic(self, auth: AuthSession, name: str) -> str:
        """Create an epic and return its id."""
        operation = f"create_epic({name})"
        body = await self._request(
            'POST',
            self._product_url(auth, "requirements/epics"),
            operation,
            expected=(200, 201),
            auth=auth,
            payload={'name': name},
        )
        return str(self._field(body, 'epicId', operation))

    async def create_user_story(self, auth: AuthSession, epic_id: str, name: str) -> str:
        """Create a user story below ``epic_id`` and return its id."""
        operation = f"create_user_story({name})"
        epic_id = self._validate_id(epic_id, "epic_id")
        body = await self._request(
            'POST',
            self._product_url(auth, "requirements/userStories"),
            operation,
            expected=(200, 201),
            auth=auth,
            payload={'epicId': int(epic_id), 'name': name},
        )
        return str(self._field(body, 'userStoryId', operation))

    # -- test case specifications --------------------------------------------

    async def find_test_cases_by_external_id(
        self,
        auth: AuthSession,
        external_id: str,
    ) -> List[str]:
        """Return the ids of all test cases whose external id equals external_id."""
        operation = f"find_test_cases_by_external_id({external_id})"
        body = await self._request(
            'GET',
            self._product_url(auth, "elements"),
            operation,
            expected=(200,),
            auth=auth,
            params={
                'fieldValue': f"externalId:equals:{external_id}",
                'types': 'TestCase',
            },
        )
        elements = self._field(body, 'elements', operation)
        ids = []
        for element in elements:
            summary = element.get('TestCaseSummary') or {}
            if summary.get('id') is not None:
                ids.append(str(summary['id']))
        return ids

    async def fetch_test_case(self, auth: AuthSession, test_case_id: str) -> RemoteTestCase:
        """Fetch a test case with the steps of its "Test" block."""
        operation = f"fetch_test_case({test_case_id})"
        body = await self._request(
            'GET',
            self._test_case_url(auth, test_case_id),
            operation,
            expected=(200,),
            auth=auth,
        )
        if not isinstance(body, dict):
            raise MalformedResponseError(operation, 'testSequence')

        steps: List[RemoteTestStep] = []
        sequence = body.get('testSequence') or {}
        for block in sequence.get('testStepBlocks') or []:
            if block.get('name') != TEST_STEP_BLOCK:
                continue
            for step in block.get('steps') or []:
                steps.append(RemoteTestStep(id=str(step['id']), text=_step_text(step)))

        external_id = body.get('externalId')
        if isinstance(external_id, dict):
            external_id = external_id.get('value')

        return RemoteTestCase(id=str(test_case_id), external_id=external_id, steps=steps)

    async def create_test_case(
        self,
        auth: AuthSession,
        name: str,
        kind: str = STRUCTURED_TEST_CASE,
        user_story_id: Optional[str] = None,
    ) -> str:
        """Create a test case and return its id.

        When ``user_story_id`` is given the test case is filed below that
        user story.
        """
        operation = f"create_test_case({name})"
        payload: Dict[str, Any] = {'name': name, 'testCaseType': kind}
        if user_story_id is not None:
            payload['userStoryId'] = int(self._validate_id(user_story_id, "user_story_id"))
        body = await self._request(
            'POST',
            self._product_url(auth, "specifications/testCases"),
            operation,
            expected=(200, 201),
            auth=auth,
            payload=payload,
        )
        return str(self._field(body, 'testCaseId', operation))

    async def patch_test_case(
        self,
        auth: AuthSession,
        test_case_id: str,
        fields: Dict[str, Any],
    ) -> None:
        """Patch test case details (description, responsibles, flags, external id)."""
        await self._request(
            'PATCH',
            self._test_case_url(auth, test_case_id),
            f"patch_test_case({test_case_id}, {sorted(fields)})",
            expected=(200, 204),
            auth=auth,
            payload=fields,
        )

    async def delete_test_step(self, auth: AuthSession, test_case_id: str, step_id: str) -> None:
        step_id = self._validate_id(step_id, "step_id")
        await self._request(
            'DELETE',
            self._test_case_url(auth, test_case_id, f"/testSteps/{step_id}"),
            f"delete_test_step({test_case_id}, {step_id})",
            expected=(200, 204),
            auth=auth,
        )

    async def create_test_step(self, auth: AuthSession, test_case_id: str, text: str) -> str:
        """Append a step to the "Test" block and return its id."""
        operation = f"create_test_step({test_case_id}, {text!r})"
        body = await self._request(
            'POST',
            self._test_case_url(auth, test_case_id, "/testSteps"),
            operation,
            expected=(200, 201),
            auth=auth,
            payload={'testStepBlock': TEST_STEP_BLOCK, 'description': text},
        )
        return str(self._field(body, 'testStepId', operation))

    async def set_precondition_empty_marker(
        self,
        auth: AuthSession,
        test_case_id: str,
        empty: bool,
    ) -> None:
        await self._request(
            'PUT',
            self._test_case_url(auth, test_case_id, "/preconditions/emptyMarker"),
            f"set_precondition_empty_marker({test_case_id}, {empty})",
            expected=(200, 204),
            auth=auth,
            payload=empty,
        )

    # -- executions ---------------------------------------------------------

    async def create_execution(self, auth: AuthSession, test_case_id: str) -> str:
        """Create an execution for a test case and return its id."""
        test_case_id = self._validate_id(test_case_id, "test_case_id")
        operation = f"create_execution({test_case_id})"
        body = await self._request(
            'POST',
            self._product_url(auth, f"executions/testCases/{test_case_id}"),
            operation,
            expected=(200, 201),
            auth=auth,
        )
        return str(self._field(body, 'executionId', operation))

    async def set_execution_status(
        self,
        auth: AuthSession,
        test_case_id: str,
        execution_id: str,
        status: ExecutionStatus,
    ) -> None:
        await self._request(
            'PUT',
            self._execution_url(auth, test_case_id, execution_id, "/status"),
            f"set_execution_status({test_case_id}, {execution_id}, {status.value})",
            expected=(200, 204),
            auth=auth,
            payload=status.value,
        )

    async def set_step_result(
        self,
        auth: AuthSession,
        test_case_id: str,
        execution_id: str,
        step_id: str,
        verdict: Verdict,
    ) -> None:
        step_id = self._validate_id(step_id, "step_id")
        await self._request(
            'PUT',
            self._execution_url(auth, test_case_id, execution_id, f"/testSteps/{step_id}/result"),
            f"set_step_result({test_case_id}, {execution_id}, {step_id}, {verdict.value})",
            expected=(200, 204),
            auth=auth,
            payload=verdict.value,
        )

    async def set_execution_result(
        self,
        auth: AuthSession,
        test_case_id: str,
        execution_id: str,
        verdict: Verdict,
    ) -> None:
        await self._request(
            'PUT',
            self._execution_url(auth, test_case_id, execution_id, "/result"),
            f"set_execution_result({test_case_id}, {execution_id}, {verdict.value})",
            expected=(200, 204),
            auth=auth,
            payload=verdict.value,
        )

    # -- automation runs ----------------------------------------------------

    async def start_automation_run(
        self,
        auth: AuthSession,
        definition: TestCaseDefinition,
        verdict: Verdict,
    ) -> str:
        """Publish a whole test case and its result as one automation run.

        Raises:
            ConflictError: If an automation for the external id is still running
        """
        operation = f"start_automation_run({definition.external_id})"
        body = await self._request(
            'POST',
            self._product_url(auth, "automation/executions/v1"),
            operation,
            expected=(200, 201),
            auth=auth,
            payload={
                'externalId': definition.external_id,
                'name': definition.display_name,
                'description': definition.description or None,
                'testSteps': list(definition.test_steps),
                'toBeReviewed': definition.mark_for_review,
                'result': verdict.value,
            },
        )
        return str(self._field(body, 'executionId', operation))

    async def terminate_running_automation(
        self,
        auth: AuthSession,
        external_id: str,
        verdict: Verdict,
    ) -> None:
        """Close the automation run currently open for external_id."""
        await self._request(
            'PATCH',
            self._product_url(auth, "automation/executions/running/v1"),
            f"terminate_running_automation({external_id}, {verdict.value})",
            expected=(200, 204),
            auth=auth,
            payload={'externalId': external_id, 'result': verdict.value},
        )


def _step_text(step: Dict[str, Any]) -> str:
    description = step.get('description')
    if isinstance(description, dict):
        description = description.get('text')
    return description or ""
