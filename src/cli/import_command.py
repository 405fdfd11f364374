"""Import command: create or update TestBench test cases from Cypress specs."""

import asyncio
import logging
from typing import Callable, Optional

from src.publisher.errors import SessionError
from src.publisher.options import PublishOptions
from src.publisher.orchestrator import TestBenchAutomation
from src.publisher.requirements import DEFAULT_EPIC
from src.spec_parser.cypress_parser import DEFAULT_SUFFIX, CypressSpecParser
from src.spec_parser.errors import SpecParseError
from src.testbench_client.auth import Authenticator
from src.testbench_client.errors import (
    APIUnreachableError,
    InvalidCredentialsError,
    TestBenchError,
)

from .config import ConfigLoader
from .errors import CLIError
from .models import ExitCode, PublishSummary
from .output import OutputHandler

logger = logging.getLogger(__name__)


class ImportCommand:
    """Parses Cypress specs and synchronizes their test cases.

    Test cases are matched by external id (TBCS_AUTID). Specs without an
    external id are reported but never imported, because a later run could
    not find them again. New test cases are filed below one user story per
    suite, all below the same epic.
    """

    def __init__(
        self,
        config_path: str = ConfigLoader.DEFAULT_CONFIG_PATH,
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        automation_factory: Optional[Callable[[PublishOptions], TestBenchAutomation]] = None,
    ):
        self.config_path = config_path
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator
        self.automation_factory = automation_factory or TestBenchAutomation

    def run(
        self,
        specs_dir: str,
        suffix: str = DEFAULT_SUFFIX,
        dry_run: bool = False,
        product_id: Optional[int] = None,
        epic: str = DEFAULT_EPIC,
    ) -> ExitCode:
        output = self.output_handler
        try:
            suites = CypressSpecParser(suffix).parse_directory(specs_dir)
        except SpecParseError as e:
            logger.error(str(e))
            output.error(str(e))
            return ExitCode.GENERAL_ERROR

        definitions = [test_case for suite in suites for test_case in suite.test_cases]
        output.info(f"Found {len(definitions)} test case(s) in {len(suites)} suite(s)")

        if dry_run:
            output.print_suites(suites, epic)
            return ExitCode.SUCCESS

        try:
            config = ConfigLoader.load(self.config_path)
            authenticator = self.authenticator or Authenticator()
            options = ConfigLoader.to_options(config, authenticator.get_credentials(), product_id)
        except InvalidCredentialsError as e:
            output.error(str(e))
            return ExitCode.AUTH_ERROR
        except CLIError as e:
            output.error(str(e))
            return ExitCode.GENERAL_ERROR

        automation = self.automation_factory(options)
        try:
            with output.spinner(f"Importing {len(definitions)} test case(s)..."):
                synced = asyncio.run(automation.sync_test_cases(
                    [(suite.name, suite.test_cases) for suite in suites],
                    epic_name=epic or None,
                ))
        except InvalidCredentialsError as e:
            output.error(f"Login failed: {e}")
            return ExitCode.AUTH_ERROR
        except APIUnreachableError as e:
            output.error(f"TestBench unreachable: {e}")
            return ExitCode.NETWORK_ERROR
        except (SessionError, TestBenchError) as e:
            output.error(f"Import aborted: {e}")
            return ExitCode.GENERAL_ERROR

        summary = PublishSummary.from_results(synced)
        output.print_summary(summary, action="Imported")
        if not summary.is_complete:
            return ExitCode.PUBLISH_INCOMPLETE
        output.success(f"Imported {summary.published_count} test case(s)")
        return ExitCode.SUCCESS
