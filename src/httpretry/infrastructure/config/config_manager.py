"""Configuration manager for loading and validating .httpretry.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from httpretry.domain.config import AppConfig, HttpConfig, RetryConfig
from httpretry.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".httpretry.yml"


class ConfigManager:
    """Manages configuration from .httpretry.yml and environment variables

    Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .httpretry.yml file (searched upward from current directory)
    3. Environment variables (HTTPRETRY_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "retry": {
            "max_attempts": 15,
            "backoff": {
                "strategy": "truncated_exponential",
                "max_exponent": 6,
                "duration": 1.0,
            },
        },
        "http": {
            "base_url": None,
            "timeout": 30.0,
            "headers": {},
            "verify": True,
            "debug": False,
        },
    }

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize config manager

        Args:
            config_path: Path to .httpretry.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"  - {field}: {error['msg']}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .httpretry.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Raises:
            ConfigurationError: If the file cannot be read or parsed
            ValidationError: If configuration is invalid
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")
            config_dict = self._merge_config(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)
        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides

        Values are passed through as strings; Pydantic coerces and validates them.
        """
        if os.getenv("HTTPRETRY_MAX_ATTEMPTS"):
            config["retry"]["max_attempts"] = os.getenv("HTTPRETRY_MAX_ATTEMPTS")

        if os.getenv("HTTPRETRY_BACKOFF"):
            config["retry"]["backoff"]["strategy"] = os.getenv("HTTPRETRY_BACKOFF")

        if os.getenv("HTTPRETRY_TIMEOUT"):
            config["http"]["timeout"] = os.getenv("HTTPRETRY_TIMEOUT")

        if os.getenv("HTTPRETRY_BASE_URL"):
            config["http"]["base_url"] = os.getenv("HTTPRETRY_BASE_URL")

        return config

    def get_retry_config(self) -> RetryConfig:
        return self.config.retry

    def get_http_config(self) -> HttpConfig:
        return self.config.http
