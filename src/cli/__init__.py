"""Command-line interface for publishing Cypress results to TestBench CS.

This package provides the `testbench-sync` CLI tool: `import` creates or
updates test cases from Cypress spec files, `publish` reports a results
file as one test session.
"""

from .import_command import ImportCommand
from .publish_command import PublishCommand
from .models import ExitCode, PublishSummary, SyncConfig
from .errors import CLIError, ConfigError, ResultsFileError

__all__ = [
    'ImportCommand',
    'PublishCommand',
    'ExitCode',
    'PublishSummary',
    'SyncConfig',
    'CLIError',
    'ConfigError',
    'ResultsFileError',
]
