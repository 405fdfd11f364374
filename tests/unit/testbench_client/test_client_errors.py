"""Unit tests for the TestBench exception hierarchy."""

import pytest

from src.testbench_client.errors import (
    APIUnreachableError,
    ConflictError,
    InvalidCredentialsError,
    MalformedResponseError,
    ResourceNotFoundError,
    SyncError,
    TestBenchError,
    UnexpectedStatusError,
)


class TestErrorHierarchy:
    """All client errors can be caught as TestBenchError and SyncError."""

    @pytest.mark.parametrize("error", [
        InvalidCredentialsError("ci", "https://tb"),
        ResourceNotFoundError("fetch_test_case(11)"),
        ConflictError("start_automation_run(T-1)"),
        APIUnreachableError("https://tb"),
        UnexpectedStatusError("join_reporting_session(1)", 201),
        MalformedResponseError("create_execution(11)", "executionId"),
    ])
    def test_subclasses(self, error):
        assert isinstance(error, TestBenchError)
        assert isinstance(error, SyncError)

    def test_status_codes(self):
        assert InvalidCredentialsError("ci", "x").status_code == 401
        assert ResourceNotFoundError("op").status_code == 404
        assert ConflictError("op").status_code == 409
        assert APIUnreachableError("x").status_code is None


class TestMessages:
    """Test cases for error messages."""

    def test_invalid_credentials_message(self):
        error = InvalidCredentialsError("ci", "https://tb")
        assert str(error) == "Login rejected (user: ci, endpoint: https://tb)"

    def test_conflict_without_detail(self):
        assert str(ConflictError("op")) == "Conflict during op"

    def test_conflict_with_detail(self):
        assert str(ConflictError("op", "running")) == "Conflict during op: running"

    def test_malformed_response_names_field(self):
        error = MalformedResponseError("create_execution(11)", "executionId")
        assert "'executionId'" in str(error)


class TestUnexpectedStatus:
    """Test cases for UnexpectedStatusError."""

    @pytest.mark.parametrize("status,expected", [
        (200, True),
        (201, True),
        (204, True),
        (299, True),
        (302, False),
        (400, False),
        (500, False),
    ])
    def test_is_alternate_success(self, status, expected):
        assert UnexpectedStatusError("op", status).is_alternate_success is expected

    def test_message_includes_detail(self):
        error = UnexpectedStatusError("op", 500, "boom")
        assert str(error) == "op returned unexpected status 500: boom"
