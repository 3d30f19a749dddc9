"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict

import yaml

LAYOUT_CHOICES = ('numbered', 'named')

DEFAULT_CONFIG: Dict[str, Any] = {
    'notion': {
        'api_version': '2022-06-28',
        'request_timeout': 30,
    },
    'export': {
        'output_directory': './tabs',
        'extension': '.md',
        'layout': 'numbered',
        'status_tag': '*',
        'cleanup_stale_files': True,
        'show_progress': True,
    },
    'rate_limit': {
        'tokens_per_interval': 3,
        'interval_seconds': 1.0,
    },
    'retry': {
        'max_retries': 10,
        'base_delay_seconds': 1.0,
    },
    'logging': {},
    'report': {},
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Missing sections and keys are filled from DEFAULT_CONFIG.

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
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        config_data = cls._substitute_env_vars_recursive(config_data)

        return cls.with_defaults(config_data)

    @classmethod
    def with_defaults(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of config with every default section and key present."""
        merged = copy.deepcopy(DEFAULT_CONFIG)
        for section, values in config.items():
            # An empty YAML section loads as None
            if values is None:
                continue
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = values
        return merged

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'notion.token')
        cls._validate_required_field(config, 'notion.root_page')
        cls._validate_required_field(config, 'export.output_directory')

        output_dir = get_nested(config, 'export.output_directory')
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        layout = get_nested(config, 'export.layout', 'numbered')
        if layout not in LAYOUT_CHOICES:
            raise ValueError(f"export.layout must be one of: {list(LAYOUT_CHOICES)}")

        extension = get_nested(config, 'export.extension', '.md')
        if not isinstance(extension, str) or not extension.startswith('.'):
            raise ValueError("export.extension must be a string starting with '.' (e.g. '.md')")

        status_tag = get_nested(config, 'export.status_tag', '*')
        if not isinstance(status_tag, str) or not status_tag:
            raise ValueError("export.status_tag must be a non-empty string ('*' disables filtering)")

        for field in ('export.cleanup_stale_files', 'export.show_progress'):
            if not isinstance(get_nested(config, field, True), bool):
                raise ValueError(f"{field} must be a boolean")

        tokens = get_nested(config, 'rate_limit.tokens_per_interval', 3)
        if not isinstance(tokens, int) or isinstance(tokens, bool) or tokens < 1:
            raise ValueError("rate_limit.tokens_per_interval must be a positive integer")

        interval = get_nested(config, 'rate_limit.interval_seconds', 1.0)
        if not isinstance(interval, (int, float)) or interval <= 0:
            raise ValueError("rate_limit.interval_seconds must be a positive number")

        max_retries = get_nested(config, 'retry.max_retries', 10)
        if not isinstance(max_retries, int) or isinstance(max_retries, bool) or max_retries < 1:
            raise ValueError("retry.max_retries must be a positive integer")

        base_delay = get_nested(config, 'retry.base_delay_seconds', 1.0)
        if not isinstance(base_delay, (int, float)) or base_delay < 0:
            raise ValueError("retry.base_delay_seconds must be a non-negative number")

        timeout = get_nested(config, 'notion.request_timeout', 30)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("notion.request_timeout must be a positive number")

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

        for section in ('notion', 'export', 'logging'):
            merged.setdefault(section, {})

        if getattr(args, 'root_page', None):
            merged['notion']['root_page'] = args.root_page

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'status_tag', None):
            merged['export']['status_tag'] = args.status_tag

        if getattr(args, 'layout', None):
            merged['export']['layout'] = args.layout

        if getattr(args, 'no_cleanup', False):
            merged['export']['cleanup_stale_files'] = False

        if getattr(args, 'verbose', 0):
            merged['logging']['level'] = 'DEBUG' if args.verbose >= 2 else 'INFO'

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

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "notion.root_page")
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


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'LAYOUT_CHOICES', 'get_nested']
