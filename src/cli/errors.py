"""Typed exception hierarchy for CLI-related errors.

This module defines all custom exceptions used by the CLI.
All exceptions inherit from CLIError base class for easy catching and
include descriptive messages with context to help with debugging.
"""

from typing import Optional

from src.testbench_client.errors import SyncError


class CLIError(SyncError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigError(CLIError):
    """Raised when configuration loading or validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class ResultsFileError(CLIError):
    """Raised when a results file cannot be read or an entry is invalid."""

    def __init__(self, file_path: str, message: str, entry: Optional[int] = None):
        if entry is not None:
            full_message = f"Results file {file_path}, entry {entry}: {message}"
        else:
            full_message = f"Results file {file_path}: {message}"
        super().__init__(full_message)
        self.file_path = file_path
        self.entry = entry
        self.original_message = message
