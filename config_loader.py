"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict
from urllib.parse import urlparse

import yaml


DEFAULT_CONFIG: Dict[str, Any] = {
    'notion': {
        'base_url': 'https://api.notion.com/v1',
        'notion_version': '2022-06-28',
        'request_timeout': 30,
        'title_property': 'Name'
    },
    'import': {
        'max_depth': 10,
        'max_retries': 3,
        'rate_limit_delay': 1.0,
        'backoff_factor': 2.0,
        'max_delay': 30.0,
        'continue_on_error': True,
        'dry_run': False
    },
    'logging': {
        'level': None,
        'file': None
    },
    'advanced': {
        'verify_ssl': True,
        'max_retries': 3,
        'retry_backoff_factor': 0.5
    }
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    # Environment variables that override config values when set
    ENV_OVERRIDES = {
        'NOTION_API_KEY': 'notion.api_token',
        'NOTION_WORKSPACE_ID': 'notion.workspace_id',
        'NOTION_DATABASE_ID': 'notion.database_id'
    }

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Values missing from the file are filled in from DEFAULT_CONFIG.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        # Substitute environment variables recursively
        config_data = cls._substitute_env_vars_recursive(config_data)

        return cls.with_defaults(config_data)

    @classmethod
    def with_defaults(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of config with every missing default filled in."""
        merged = copy.deepcopy(DEFAULT_CONFIG)
        for section, values in config.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = values
        return merged

    @classmethod
    def apply_env_overrides(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply NOTION_* environment variables on top of the config.

        Args:
            config: Configuration dictionary

        Returns:
            New configuration dictionary with overrides applied
        """
        merged = copy.deepcopy(config)
        for env_var, path in cls.ENV_OVERRIDES.items():
            value = os.getenv(env_var)
            if value:
                _set_nested(merged, path, value)
        return merged

    @classmethod
    def validate(cls, config: Dict[str, Any], dry_run: bool = False) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate
            dry_run: Credentials are not required for dry runs

        Raises:
            ValueError: If validation fails
        """
        if not dry_run:
            cls._validate_required_field(config, 'notion.api_token')
            cls._validate_required_field(config, 'notion.database_id')

        # optional; only logged as the target workspace
        if get_nested(config, 'notion.workspace_id'):
            cls._validate_required_field(config, 'notion.workspace_id')

        base_url = get_nested(config, 'notion.base_url')
        if base_url:
            cls._validate_url(base_url, 'notion.base_url')

        timeout = get_nested(config, 'notion.request_timeout', 30)
        if not _is_number(timeout) or timeout <= 0:
            raise ValueError("notion.request_timeout must be a positive number")

        max_depth = get_nested(config, 'import.max_depth', 10)
        if not isinstance(max_depth, int) or isinstance(max_depth, bool) or max_depth < 1:
            raise ValueError("import.max_depth must be a positive integer")

        max_retries = get_nested(config, 'import.max_retries', 3)
        if not isinstance(max_retries, int) or isinstance(max_retries, bool) or max_retries < 0:
            raise ValueError("import.max_retries must be a non-negative integer")

        for field in ('rate_limit_delay', 'max_delay'):
            value = get_nested(config, f'import.{field}', 1.0)
            if not _is_number(value) or value < 0:
                raise ValueError(f"import.{field} must be a non-negative number")

        backoff_factor = get_nested(config, 'import.backoff_factor', 2.0)
        if not _is_number(backoff_factor) or backoff_factor < 1:
            raise ValueError("import.backoff_factor must be a number >= 1")

        continue_on_error = get_nested(config, 'import.continue_on_error', True)
        if not isinstance(continue_on_error, bool):
            raise ValueError("import.continue_on_error must be a boolean")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        # Ensure nested dictionaries exist
        for section in ('notion', 'import', 'logging'):
            if section not in merged or merged[section] is None:
                merged[section] = {}

        if getattr(args, 'database_id', None):
            merged['notion']['database_id'] = args.database_id

        if getattr(args, 'workspace_id', None):
            merged['notion']['workspace_id'] = args.workspace_id

        if getattr(args, 'max_depth', None):
            merged['import']['max_depth'] = args.max_depth

        if getattr(args, 'dry_run', False):
            merged['import']['dry_run'] = True

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        verbose = getattr(args, 'verbose', 0)
        if verbose:
            merged['logging']['level'] = 'DEBUG' if verbose >= 2 else 'INFO'

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        # Unsubstituted ${VAR} left over from load()
        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url)
        if not parsed.scheme or parsed.scheme not in ['http', 'https']:
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _set_nested(config: dict, path: str, value: Any) -> None:
    keys = path.split('.')
    target = config
    for key in keys[:-1]:
        if not isinstance(target.get(key), dict):
            target[key] = {}
        target = target[key]
    target[keys[-1]] = value


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "notion.database_id")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
