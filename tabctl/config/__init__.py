"""Configuration module for tabctl."""

from tabctl.config.loader import load_config, get_config_path
from tabctl.config.schema import Config
from tabctl.config.access import get_config, clear_config_cache

__all__ = ["Config", "load_config", "get_config_path", "get_config", "clear_config_cache"]
