"""Publish command orchestration for CLI.

This module provides the PublishCommand class that loads configuration,
credentials and a results file, runs the TestBenchAutomation and maps the
outcome to an exit code.
"""

import asyncio
import logging
from typing import Callable, Optional

from src.publisher.errors import SessionError
from src.publisher.options import PublishOptions
from src.publisher.orchestrator import TestBenchAutomation
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
from .results_loader import ResultsLoader

logger = logging.getLogger(__name__)


class PublishCommand:
    """Publishes a results file as one TestBench run.

    The workflow:
        1. Load configuration and credentials
        2. Load the results file
        3. start() the run, publish every result, end() the run
        4. Display the summary and return an exit code

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> exit_code = PublishCommand(output_handler=output).run("results.yaml")
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        config_path: str = ConfigLoader.DEFAULT_CONFIG_PATH,
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        automation_factory: Optional[Callable[[PublishOptions], TestBenchAutomation]] = None,
    ):
        """Initialize publish command with dependencies.

        Args:
            config_path: Path to configuration YAML file
            output_handler: OutputHandler for terminal output (optional)
            authenticator: Authenticator for credentials (optional)
            automation_factory: Builds the TestBenchAutomation (optional, for testing)
        """
        self.config_path = config_path
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator
        self.automation_factory = automation_factory or TestBenchAutomation

    def run(self, results_path: str, product_id: Optional[int] = None) -> ExitCode:
        """Publish all results of results_path.

        Args:
            results_path: YAML or JSON results file
            product_id: Product id overriding the configuration

        Returns:
            ExitCode describing the result
        """
        output = self.output_handler
        try:
            config = ConfigLoader.load(self.config_path)
            authenticator = self.authenticator or Authenticator()
            options = ConfigLoader.to_options(config, authenticator.get_credentials(), product_id)
            results = ResultsLoader.load(results_path)
        except InvalidCredentialsError as e:
            logger.error(str(e))
            output.error(str(e))
            return ExitCode.AUTH_ERROR
        except CLIError as e:
            logger.error(str(e))
            output.error(str(e))
            return ExitCode.GENERAL_ERROR

        if not results:
            output.warning(f"No results found in {results_path}")
            return ExitCode.SUCCESS

        output.info(f"Publishing {len(results)} result(s) to {options.server_url} (product {options.product_id})")
        automation = self.automation_factory(options)

        try:
            with output.spinner(f"Publishing {len(results)} result(s)..."):
                published = asyncio.run(automation.run(results))
        except InvalidCredentialsError as e:
            logger.error(f"Login failed: {e}")
            output.error(f"Login failed: {e}")
            return ExitCode.AUTH_ERROR
        except APIUnreachableError as e:
            logger.error(f"TestBench unreachable: {e}")
            output.error(f"TestBench unreachable: {e}")
            return ExitCode.NETWORK_ERROR
        except (SessionError, TestBenchError) as e:
            logger.error(f"Publishing aborted: {e}")
            output.error(f"Publishing aborted: {e}")
            return ExitCode.GENERAL_ERROR

        summary = PublishSummary.from_results(published)
        output.print_summary(summary)
        if not summary.is_complete:
            output.warning("Some results were not published; see the log for details")
            return ExitCode.PUBLISH_INCOMPLETE

        output.success(f"Published {summary.published_count} result(s)")
        return ExitCode.SUCCESS
