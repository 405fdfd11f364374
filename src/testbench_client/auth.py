"""Authentication module for loading TestBench credentials.

This module handles loading TestBench CS credentials from environment variables
using python-dotenv. It validates that all required credentials are present and
raises appropriate errors if any are missing.
"""

import os
from typing import NamedTuple

from dotenv import load_dotenv

from .errors import MissingCredentialsError


class Credentials(NamedTuple):
    """TestBench login credentials."""
    url: str
    workspace: str
    user: str
    password: str


class Authenticator:
    """Loads and validates TestBench credentials from environment variables.

    Credentials are loaded from a .env file using python-dotenv and are never
    cached or logged.

    Required environment variables:
        TESTBENCH_URL: Server URL (e.g., https://testbench.example.com)
        TESTBENCH_WORKSPACE: Workspace (tenant) name
        TESTBENCH_USER: Login name
        TESTBENCH_PASSWORD: Password

    Raises:
        InvalidCredentialsError: If any required credential is missing

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.url}")
    """

    REQUIRED_VARIABLES = (
        'TESTBENCH_URL',
        'TESTBENCH_WORKSPACE',
        'TESTBENCH_USER',
        'TESTBENCH_PASSWORD',
    )

    def __init__(self):
        """Initialize the authenticator by loading environment variables from .env file."""
        load_dotenv()

    def get_credentials(self) -> Credentials:
        """Get TestBench credentials from environment variables.

        Returns:
            Credentials: A named tuple containing url, workspace, user and password

        Raises:
            MissingCredentialsError: If any required credential is missing
        """
        values = {name: os.getenv(name) for name in self.REQUIRED_VARIABLES}

        missing = [name for name, value in values.items() if not value]
        if missing:
            raise MissingCredentialsError(
                missing=missing,
                user=values['TESTBENCH_USER'] or "unknown",
                endpoint=values['TESTBENCH_URL'] or "unknown"
            )

        return Credentials(
            url=values['TESTBENCH_URL'].rstrip('/'),  # type: ignore[union-attr]
            workspace=values['TESTBENCH_WORKSPACE'],  # type: ignore[arg-type]
            user=values['TESTBENCH_USER'],  # type: ignore[arg-type]
            password=values['TESTBENCH_PASSWORD'],  # type: ignore[arg-type]
        )
