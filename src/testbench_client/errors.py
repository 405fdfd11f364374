"""Typed exception hierarchy for TestBench-related errors.

This module defines all custom exceptions raised by the TestBench client.
All exceptions inherit from TestBenchError so callers can catch any remote
failure at once, while the concrete classes let the publisher classify a
failure by HTTP status without inspecting transport details.
"""

from typing import List, Optional


class SyncError(Exception):
    """Base exception for all testbench-sync errors.

    Use this to catch any application-level error from the sync tool.
    """
    pass


class TestBenchError(SyncError):
    """Base exception for all TestBench-related errors."""

    __test__ = False

    status_code: Optional[int] = None


class InvalidCredentialsError(TestBenchError):
    """Raised when credentials are missing or the login is rejected."""

    status_code = 401

    def __init__(self, user: str, endpoint: str):
        super().__init__(
            f"Login rejected (user: {user}, endpoint: {endpoint})"
        )
        self.user = user
        self.endpoint = endpoint


class ResourceNotFoundError(TestBenchError):
    """Raised when a remote resource does not exist."""

    status_code = 404

    def __init__(self, operation: str):
        super().__init__(f"Resource not found during {operation}")
        self.operation = operation


class ConflictError(TestBenchError):
    """Raised when the service answers 409, e.g. an automation is already running."""

    status_code = 409

    def __init__(self, operation: str, detail: Optional[str] = None):
        message = f"Conflict during {operation}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.operation = operation
        self.detail = detail


class APIUnreachableError(TestBenchError):
    """Raised when the TestBench API is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class UnexpectedStatusError(TestBenchError):
    """Raised when a call returns a status the caller did not anticipate.

    Attributes:
        operation: Name of the gateway operation
        status_code: HTTP status code returned by the service
        detail: Sanitized response body
    """

    def __init__(self, operation: str, status_code: int, detail: str = ""):
        message = f"{operation} returned unexpected status {status_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.detail = detail

    @property
    def is_alternate_success(self) -> bool:
        """True when the status is a success code other than the expected one."""
        return 200 <= self.status_code < 300


class MalformedResponseError(TestBenchError):
    """Raised when a response body lacks a field the gateway relies on."""

    def __init__(self, operation: str, field_name: str):
        super().__init__(
            f"Response of {operation} is missing field '{field_name}'"
        )
        self.operation = operation
        self.field_name = field_name


class MissingCredentialsError(InvalidCredentialsError):
    """Raised when required credential variables are not set."""

    def __init__(self, missing: List[str], user: str, endpoint: str):
        TestBenchError.__init__(
            self, f"Missing credentials: {', '.join(missing)} not set"
        )
        self.user = user
        self.endpoint = endpoint
        self.missing = missing


class InvalidIdentifierError(TestBenchError):
    """Raised when an id that would be placed in a URL path is not numeric."""

    def __init__(self, name: str, value: object):
        super().__init__(
            f"Invalid {name} format: '{value}'. TestBench ids must contain only numeric characters."
        )
        self.name = name
        self.value = value
