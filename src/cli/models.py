"""Data models for CLI operations.

This module defines all data models used by the CLI module.
All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Sequence

from src.models.outcome import OutcomeKind
from src.publisher.orchestrator import PublishResult


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Every test was published
    - GENERAL_ERROR (1): General error (config issues, invalid files, session errors)
    - PUBLISH_INCOMPLETE (2): Some tests were skipped or failed to publish
    - AUTH_ERROR (3): Authentication failure
    - NETWORK_ERROR (4): TestBench server unreachable

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    PUBLISH_INCOMPLETE = 2
    AUTH_ERROR = 3
    NETWORK_ERROR = 4


@dataclass
class SyncConfig:
    """Behaviour settings loaded from .testbench-sync/config.yaml.

    Attributes:
        product_id: TestBench product id (None if not configured)
        session_prefix: Prefix of the test session name
        skip_test_case_updates: Never create or change remote test cases
        close_already_running_automation: Close conflicting automation runs and retry once
        use_automation_runs: Publish through automation runs
        timeout: Request timeout in seconds
        verify_tls: Verify TLS certificates
    """
    product_id: Optional[int] = None
    session_prefix: str = "CYPRESS"
    skip_test_case_updates: bool = False
    close_already_running_automation: bool = False
    use_automation_runs: bool = False
    timeout: float = 30.0
    verify_tls: bool = True


@dataclass
class PublishSummary:
    """Counts of a publish (or import) run for display to the user.

    Attributes:
        published_count: Tests published successfully
        skipped_count: Tests skipped on purpose (warnings)
        failed_count: Tests whose publish failed
        problems: One line per skipped or failed test
    """
    published_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    problems: List[str] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: Sequence[PublishResult]) -> 'PublishSummary':
        summary = cls()
        for result in results:
            outcome = result.outcome
            if outcome.kind is OutcomeKind.OK:
                summary.published_count += 1
                continue
            if outcome.kind is OutcomeKind.WARN:
                summary.skipped_count += 1
            else:
                summary.failed_count += 1
            summary.problems.append(f"{result.external_id}: {outcome.reason}")
        return summary

    @property
    def is_complete(self) -> bool:
        return self.skipped_count == 0 and self.failed_count == 0
