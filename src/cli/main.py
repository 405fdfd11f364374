"""Main CLI entry point for the testbench-sync command.

This module provides the Typer application with two commands:
`import` (Cypress specs -> TestBench test cases) and `publish`
(results file -> TestBench test session with executions).
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from src.cli.config import ConfigLoader
from src.cli.import_command import ImportCommand
from src.cli.output import OutputHandler
from src.cli.publish_command import PublishCommand
from src.publisher.requirements import DEFAULT_EPIC
from src.spec_parser.cypress_parser import DEFAULT_SUFFIX

VERSION = "0.1.0"

app = typer.Typer(
    name="testbench-sync",
    help="""Publish Cypress test results to TestBench CS.

QUICK START:
  testbench-sync import --specs cypress/e2e --dry-run   # Show parsed test cases
  testbench-sync import --specs cypress/e2e             # Create/update test cases
  testbench-sync publish results.yaml                   # Report a test run

Credentials are read from TESTBENCH_URL, TESTBENCH_WORKSPACE, TESTBENCH_USER
and TESTBENCH_PASSWORD (a .env file is honored).""",
    add_completion=False,
    rich_markup_mode=None,
    invoke_without_command=True,
)

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"testbench-sync_{timestamp}.log"

        # file log always records the full detail of remote calls
        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        app_logger.setLevel(logging.DEBUG)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: str = typer.Option(
        ConfigLoader.DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to the YAML configuration file",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Publish Cypress test results to TestBench CS."""
    if version:
        typer.echo(f"testbench-sync version {VERSION}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    _configure_logging(verbosity, logdir)
    ctx.obj = {
        'config_path': config,
        'output': OutputHandler(verbosity=verbosity, no_color=no_color),
    }


@app.command("import")
def import_specs(
    ctx: typer.Context,
    specs: str = typer.Option(
        "./",
        "--specs",
        help="Folder containing Cypress spec files",
        metavar="FOLDER",
    ),
    suffix: str = typer.Option(
        DEFAULT_SUFFIX,
        "--suffix",
        help="File name suffix of spec files",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "--dryrun",
        help="Only parse and show the test cases, import nothing",
    ),
    product_id: Optional[int] = typer.Option(
        None,
        "--product-id",
        help="TestBench product id (overrides the config file)",
    ),
    epic: str = typer.Option(
        DEFAULT_EPIC,
        "--epic",
        help="Epic that new test cases are filed below, one user story per suite (empty: none)",
    ),
) -> None:
    """Create or update TestBench test cases from Cypress spec files."""
    command = ImportCommand(
        config_path=ctx.obj['config_path'],
        output_handler=ctx.obj['output'],
    )
    exit_code = command.run(specs, suffix=suffix, dry_run=dry_run, product_id=product_id, epic=epic)
    raise typer.Exit(exit_code)


@app.command("publish")
def publish_results(
    ctx: typer.Context,
    results: str = typer.Argument(
        ...,
        help="YAML or JSON file with the results of the test run",
    ),
    product_id: Optional[int] = typer.Option(
        None,
        "--product-id",
        help="TestBench product id (overrides the config file)",
    ),
) -> None:
    """Publish a results file as one TestBench test session."""
    command = PublishCommand(
        config_path=ctx.obj['config_path'],
        output_handler=ctx.obj['output'],
    )
    exit_code = command.run(results, product_id=product_id)
    raise typer.Exit(exit_code)


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
