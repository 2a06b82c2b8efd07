"""
Configuration loading utilities for the form engine app.

Loads config.yaml, deep-merges it over built-in defaults and exposes the
logging level the app configures itself with.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging
from copy import deepcopy

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("config.yaml")


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with update_dict taking precedence.

    Args:
        base_dict: Base dictionary (defaults)
        update_dict: Dictionary to merge in (user config)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base_dict)

    for key, value in update_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def get_default_config() -> Dict[str, Any]:
    """Built-in configuration used when config.yaml is absent or unusable."""
    return {
        'app': {
            'name': 'Form Engine',
            'version': '1.0.0',
            'page_title': 'Configuration Editor'
        },
        'logging': {
            'level': 'INFO'
        },
        'form': {
            'definition': 'config_form.yaml'
        },
        'configuration_source': {
            'url': 'http://localhost:8080/api/configs',
            'file': None,
            'timeout': 10.0
        },
        'record_store': {
            'base_url': None,
            'resource': 'configs',
            'timeout': 10.0
        }
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load application configuration.

    Args:
        config_path: Optional path to config file (defaults to config.yaml)

    Returns:
        Complete configuration dictionary; defaults when the file is missing
        or cannot be parsed
    """
    if config_path is None:
        config_path = CONFIG_PATH
    config_path = Path(config_path)

    default_config = get_default_config()

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.info("Using default configuration")
        return default_config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config
    except (IOError, OSError) as e:
        logger.error(f"Failed to read configuration file {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config

    if user_config is None:
        logger.warning(f"Configuration file is empty: {config_path}")
        return default_config

    if not isinstance(user_config, dict):
        logger.error(f"Configuration file is not a valid dictionary: {config_path}")
        logger.info("Using default configuration")
        return default_config

    config = deep_merge(default_config, user_config)
    logger.info(f"Successfully loaded configuration from {config_path}")
    return config


def get_config_value(config: Dict[str, Any], section: str, key: str, default: Any = None) -> Any:
    """
    Get a specific configuration value.

    Args:
        config: Configuration dictionary from load_config
        section: Configuration section (e.g., 'form', 'record_store')
        key: Configuration key within section
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    section_values = config.get(section) or {}
    if not isinstance(section_values, dict):
        return default
    value = section_values.get(key, default)
    return default if value is None else value


def get_logging_level(level_str: Any) -> int:
    """Map string logging level to logging constant."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    return level_map.get(str(level_str).upper(), logging.INFO)


def configure_logging(config: Dict[str, Any]) -> int:
    """Apply the configured logging level; returns the level used."""
    level = get_logging_level(get_config_value(config, 'logging', 'level', 'INFO'))
    logging.basicConfig(level=level)
    return level
