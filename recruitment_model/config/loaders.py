import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from cerberus import Validator
from pydantic import ValidationError

from recruitment_model.config.models import MainConfig
from recruitment_model.scenario_loader import load as load_with_extends

# Configure logger for this module
logger = logging.getLogger(__name__)

# Top-level sections accepted in a config file. Field-level validation is left
# to the pydantic models; this only rejects unknown or mistyped sections early.
CONFIG_SCHEMA: Dict[str, Dict[str, Any]] = {
    "extends": {"type": "string", "required": False},
    "capacity": {"type": "dict", "required": False, "nullable": True},
    "retention": {"type": "dict", "required": False, "nullable": True},
    "cohort": {"type": "dict", "required": False, "nullable": True},
    "forecast": {"type": "dict", "required": False, "nullable": True},
    "monitoring": {"type": "dict", "required": False, "nullable": True},
    "monte_carlo": {"type": "dict", "required": False, "nullable": True},
}


class ConfigLoadError(Exception):
    """Custom exception for errors during config loading."""

    pass


def load_yaml_config(config_path: Union[str, Path]) -> Optional[Dict[str, Any]]:
    """
    Loads configuration data from a YAML file, resolving any 'extends' chain.

    Args:
        config_path: Path pointing to the YAML configuration file.

    Returns:
        A dictionary containing the loaded configuration.

    Raises:
        ConfigLoadError: If the file cannot be found or parsed.
    """
    if not isinstance(config_path, Path):
        config_path = Path(config_path)

    logger.info(f"Attempting to load configuration from: {config_path}")

    try:
        if not config_path.is_file():
            logger.error(f"Configuration file not found at path: {config_path}")
            raise ConfigLoadError(f"Configuration file not found: {config_path}")

        config_data = load_with_extends(str(config_path))

        if not isinstance(config_data, dict):
            logger.error(f"Configuration file {config_path} did not parse into a dictionary.")
            raise ConfigLoadError(
                f"Invalid configuration format in {config_path}: Expected a dictionary."
            )

        logger.info(f"Successfully loaded configuration from {config_path}")
        return config_data

    except ConfigLoadError:
        raise
    except FileNotFoundError as e:
        logger.error(f"Configuration file not found (FileNotFoundError): {e}")
        raise ConfigLoadError(f"Configuration file not found: {e}") from e
    except yaml.YAMLError as e:
        logger.exception(f"Error parsing YAML configuration file {config_path}: {e}")
        raise ConfigLoadError(f"Error parsing YAML file {config_path}") from e
    except ValueError as e:
        logger.error(f"Invalid configuration structure in {config_path}: {e}")
        raise ConfigLoadError(str(e)) from e


def build_config(config_data: Optional[Dict[str, Any]]) -> MainConfig:
    """
    Validates a raw configuration mapping and returns the typed MainConfig.

    Sections that are absent or null fall back to their defaults.
    """
    config_data = dict(config_data or {})
    config_data.pop("extends", None)

    v = Validator(CONFIG_SCHEMA)
    if not v.validate(config_data):
        raise ConfigLoadError(f"Config validation failed: {v.errors}")

    sections = {k: val for k, val in config_data.items() if val is not None}
    try:
        config = MainConfig(**sections)
    except ValidationError as e:
        logger.error(f"Configuration values failed validation: {e}")
        raise ConfigLoadError(f"Config validation failed: {e}") from e

    logger.debug(f"Configuration loaded: {config.model_dump()}")
    return config


def load_config(config_path: Optional[Union[str, Path]] = None) -> MainConfig:
    """
    Loads, validates and returns the configuration at config_path.

    With no path, returns the default configuration.
    """
    if config_path is None:
        logger.info("No configuration file given. Using default configuration.")
        return MainConfig()
    return build_config(load_yaml_config(config_path))


# Expose for import
__all__ = [
    "CONFIG_SCHEMA",
    "ConfigLoadError",
    "load_yaml_config",
    "build_config",
    "load_config",
]
