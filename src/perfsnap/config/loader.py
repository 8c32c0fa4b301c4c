"""YAML configuration file loading with Pydantic validation."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import CollectionConfig


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""


def load_yaml(path: Path) -> dict:
    """Load a YAML file and return its contents as a dict.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML contents.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
            if data is None:
                return {}
            if not isinstance(data, dict):
                raise ConfigError(f"Expected a mapping at top level of {path}")
            return data
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {path}") from None
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def load_config(
    path: Path | None = None, overrides: dict[str, Any] | None = None
) -> CollectionConfig:
    """Build a validated CollectionConfig.

    Values from the YAML file at ``path`` (if given) are applied first,
    then ``overrides``; entries whose value is None are ignored so unset
    CLI options do not clobber the file.

    Raises:
        ConfigError: If the file is invalid or validation fails.
    """
    data: dict[str, Any] = load_yaml(path) if path is not None else {}
    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value
    try:
        return CollectionConfig(**data)
    except ValidationError as e:
        source = path if path is not None else "command line"
        raise ConfigError(f"Configuration validation failed for {source}: {e}") from e
