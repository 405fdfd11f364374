"""Publishing of automated test results to TestBench CS.

This package reconciles local test case definitions with remote test cases
and reports execution results into a test session per run.
"""

from .automation_reporter import AutomationRunReporter
from .errors import PublishError, SessionError
from .execution_reporter import ExecutionReporter, build_step_results
from .options import PublishOptions
from .orchestrator import PublishResult, TestBenchAutomation
from .requirements import DEFAULT_EPIC, RequirementHierarchy
from .session_manager import SessionLifecycleManager
from .test_case_synchronizer import TestCaseSynchronizer, has_changed

__all__ = [
    'DEFAULT_EPIC',
    'AutomationRunReporter',
    'ExecutionReporter',
    'PublishError',
    'PublishOptions',
    'PublishResult',
    'RequirementHierarchy',
    'SessionError',
    'SessionLifecycleManager',
    'TestBenchAutomation',
    'TestCaseSynchronizer',
    'build_step_results',
    'has_changed',
]
