"""Configuration file loading and validation.

Behaviour settings live in a YAML file (default
.testbench-sync/config.yaml); credentials never do, they come from the
environment through the Authenticator.
"""

from typing import Any, Dict, Optional

import yaml

from src.publisher.options import PublishOptions
from src.testbench_client.auth import Credentials

from .errors import ConfigError
from .models import SyncConfig


class ConfigLoader:
    """Handles configuration file loading and validation.

    Configuration file structure:
        product_id: 4
        session_prefix: "CYPRESS"
        skip_test_case_updates: false
        close_already_running_automation: false
        use_automation_runs: false
        timeout: 30
        verify_tls: true

    A missing file is not an error; all fields then take their defaults.
    """

    DEFAULT_CONFIG_PATH = '.testbench-sync/config.yaml'

    BOOLEAN_FIELDS = (
        'skip_test_case_updates',
        'close_already_running_automation',
        'use_automation_runs',
        'verify_tls',
    )

    KNOWN_FIELDS = set(BOOLEAN_FIELDS) | {'product_id', 'session_prefix', 'timeout'}

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> SyncConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            SyncConfig with parsed configuration

        Raises:
            ConfigError: If the file cannot be read or is invalid
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return SyncConfig()
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}")

        if not content.strip():
            return SyncConfig()

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            return SyncConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> SyncConfig:
        unknown = sorted(set(config_dict) - cls.KNOWN_FIELDS)
        if unknown:
            raise ConfigError(f"Unknown field(s): {', '.join(unknown)}")

        config = SyncConfig()

        product_id = config_dict.get('product_id')
        if product_id is not None:
            # bool is an int subclass
            if isinstance(product_id, bool) or not isinstance(product_id, int) or product_id <= 0:
                raise ConfigError("Must be a positive integer", 'product_id')
            config.product_id = product_id

        session_prefix = config_dict.get('session_prefix')
        if session_prefix is not None:
            if not isinstance(session_prefix, str) or not session_prefix.strip():
                raise ConfigError("Must be a non-empty string", 'session_prefix')
            config.session_prefix = session_prefix.strip()

        timeout = config_dict.get('timeout')
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ConfigError("Must be a positive number", 'timeout')
            config.timeout = float(timeout)

        for name in cls.BOOLEAN_FIELDS:
            value = config_dict.get(name)
            if value is None:
                continue
            if not isinstance(value, bool):
                raise ConfigError(f"Must be true or false, got {type(value).__name__}", name)
            setattr(config, name, value)

        return config

    @staticmethod
    def to_options(
        config: SyncConfig,
        credentials: Credentials,
        product_id: Optional[int] = None,
    ) -> PublishOptions:
        """Combine configuration and credentials into PublishOptions.

        Args:
            config: Loaded configuration
            credentials: Credentials from the environment
            product_id: Product id given on the command line (overrides config)

        Raises:
            ConfigError: If no product id is known
        """
        effective_product_id = product_id if product_id is not None else config.product_id
        if effective_product_id is None:
            raise ConfigError(
                "No product id configured (set product_id in the config file or pass --product-id)",
                'product_id'
            )

        return PublishOptions(
            server_url=credentials.url,
            workspace=credentials.workspace,
            username=credentials.user,
            password=credentials.password,
            product_id=effective_product_id,
            session_prefix=config.session_prefix,
            skip_test_case_updates=config.skip_test_case_updates,
            close_already_running_automation=config.close_already_running_automation,
            use_automation_runs=config.use_automation_runs,
            timeout=config.timeout,
            verify_tls=config.verify_tls,
        )
