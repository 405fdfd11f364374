"""TestBench CS client library for publishing automated test results.

This package provides an async Python abstraction over the TestBench CS REST
API: login sessions, test sessions, test case specifications, test steps
and executions.
"""

from .api_wrapper import TestBenchGateway
from .auth import Authenticator, Credentials
from .errors import (
    SyncError,
    TestBenchError,
    InvalidCredentialsError,
    ResourceNotFoundError,
    ConflictError,
    APIUnreachableError,
    UnexpectedStatusError,
    MalformedResponseError,
    MissingCredentialsError,
    InvalidIdentifierError,
)

__all__ = [
    "TestBenchGateway",
    "Authenticator",
    "Credentials",
    "SyncError",
    "TestBenchError",
    "InvalidCredentialsError",
    "ResourceNotFoundError",
    "ConflictError",
    "APIUnreachableError",
    "UnexpectedStatusError",
    "MalformedResponseError",
    "MissingCredentialsError",
    "InvalidIdentifierError",
]
