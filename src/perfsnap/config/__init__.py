"""Run configuration."""

from .loader import ConfigError, load_config, load_yaml
from .models import CollectionConfig

__all__ = ["CollectionConfig", "ConfigError", "load_config", "load_yaml"]
