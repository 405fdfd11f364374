"""Unit tests for main CLI entry point (main.py).

Tests the Typer CLI application using CliRunner.
"""

import logging
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from src.cli.main import VERSION, _configure_logging, app
from src.cli.models import ExitCode


runner = CliRunner()


class TestConfigureLogging:
    """Test cases for _configure_logging function."""

    def test_verbosity_0_sets_warning_level(self):
        """Verbosity 0 sets logging to WARNING level."""
        with patch('logging.getLogger') as mock_get_logger:
            mock_app_logger = MagicMock()
            mock_get_logger.return_value = mock_app_logger

            _configure_logging(0)

            mock_get_logger.assert_called_with("src")
            mock_app_logger.setLevel.assert_called_with(logging.WARNING)

    def test_verbosity_1_sets_info_level(self):
        with patch('logging.getLogger') as mock_get_logger:
            mock_app_logger = MagicMock()
            mock_get_logger.return_value = mock_app_logger

            _configure_logging(1)

            mock_app_logger.setLevel.assert_called_with(logging.INFO)

    def test_verbosity_2_sets_debug_level(self):
        with patch('logging.getLogger') as mock_get_logger:
            mock_app_logger = MagicMock()
            mock_get_logger.return_value = mock_app_logger

            _configure_logging(2)

            mock_app_logger.setLevel.assert_called_with(logging.DEBUG)

    def test_logdir_creates_debug_log_file(self, tmp_path):
        """A log directory always records DEBUG, whatever the verbosity."""
        with patch('logging.getLogger') as mock_get_logger, \
                patch('src.cli.main.logging.FileHandler') as mock_file_handler:
            mock_app_logger = MagicMock()
            mock_get_logger.return_value = mock_app_logger

            _configure_logging(0, str(tmp_path / "logs"))

            assert (tmp_path / "logs").is_dir()
            log_file = mock_file_handler.call_args.args[0]
            assert log_file.name.startswith("testbench-sync_")
            mock_app_logger.setLevel.assert_called_with(logging.DEBUG)


class TestCallback:
    """Test cases for global options."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"testbench-sync version {VERSION}" in result.output

    def test_no_command_shows_help(self):
        result = runner.invoke(app, [])

        assert result.exit_code == 0
        assert "publish" in result.output
        assert "import" in result.output


@patch('src.cli.main._configure_logging')
class TestCommands:
    """Test cases for command wiring."""

    @patch('src.cli.main.PublishCommand')
    def test_publish_passes_arguments(self, mock_command_class, mock_configure_logging):
        mock_command_class.return_value.run.return_value = ExitCode.PUBLISH_INCOMPLETE

        result = runner.invoke(app, [
            "--config", "custom.yaml", "-v", "1",
            "publish", "results.yaml", "--product-id", "9",
        ])

        assert result.exit_code == ExitCode.PUBLISH_INCOMPLETE
        assert mock_command_class.call_args.kwargs['config_path'] == "custom.yaml"
        mock_command_class.return_value.run.assert_called_once_with("results.yaml", product_id=9)
        mock_configure_logging.assert_called_once_with(1, None)

    def test_publish_requires_results_argument(self, mock_configure_logging):
        result = runner.invoke(app, ["publish"])

        assert result.exit_code != 0

    @patch('src.cli.main.ImportCommand')
    def test_import_passes_options(self, mock_command_class, mock_configure_logging):
        mock_command_class.return_value.run.return_value = ExitCode.SUCCESS

        result = runner.invoke(app, [
            "import", "--specs", "cypress/e2e", "--suffix", ".cy.js", "--dryrun", "--epic", "Smoke",
        ])

        assert result.exit_code == 0
        mock_command_class.return_value.run.assert_called_once_with(
            "cypress/e2e", suffix=".cy.js", dry_run=True, product_id=None, epic="Smoke",
        )

    @patch('src.cli.main.ImportCommand')
    def test_import_defaults(self, mock_command_class, mock_configure_logging):
        mock_command_class.return_value.run.return_value = ExitCode.AUTH_ERROR

        result = runner.invoke(app, ["import"])

        assert result.exit_code == ExitCode.AUTH_ERROR
        mock_command_class.return_value.run.assert_called_once_with(
            "./", suffix=".spec.js", dry_run=False, product_id=None, epic="Cypress-Tests",
        )
