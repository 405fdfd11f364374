"""Typed exception hierarchy for publisher errors."""

from src.testbench_client.errors import SyncError


class PublishError(SyncError):
    """Base exception for all publisher errors."""
    pass


class SessionError(PublishError):
    """Raised when the session lifecycle is violated or cannot be established.

    Examples are calling start() twice, publishing before start(), or a
    test session that cannot be created after a successful login.
    """

    def __init__(self, message: str):
        super().__init__(message)
