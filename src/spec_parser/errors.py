"""Exceptions raised while reading Cypress spec files."""

from typing import Optional

from src.testbench_client.errors import SyncError


class SpecParseError(SyncError):
    """Raised when a spec file or directory cannot be read."""

    def __init__(self, path: str, reason: Optional[str] = None):
        message = f"Cannot parse Cypress specs at {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.path = path
        self.reason = reason
