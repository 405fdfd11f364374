"""Root pytest configuration for all tests.

Provides the options, session and in-memory TestBench fixtures shared by
unit and integration tests.
"""

import logging

import pytest

from src.models.session import AuthSession, ReportingSession, SessionContext
from src.publisher.options import PublishOptions
from tests.helpers.fake_testbench import FakeTestBench

# urllib3 logs connection pool details at DEBUG level
logging.getLogger("urllib3").setLevel(logging.WARNING)


@pytest.fixture
def options():
    """Default run options matching the FakeTestBench credentials."""
    return PublishOptions(
        server_url="https://testbench.example.com",
        workspace="imbus",
        username="ci",
        password="secret",
        product_id=4,
    )


@pytest.fixture
def fake_testbench():
    return FakeTestBench()


@pytest.fixture
def auth():
    return AuthSession(access_token="token-abc", tenant_id=1, product_id=4, user_id=7)


@pytest.fixture
def context(auth):
    """Context of a started run."""
    return SessionContext(
        auth=auth,
        reporting_session=ReportingSession(id="900", name="CYPRESS_2026-10-19T10:00:00+00:00"),
    )
