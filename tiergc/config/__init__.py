"""Configuration module for tiergc."""

from tiergc.config.loader import load_config, get_config_path
from tiergc.config.schema import Config, ContextGCConfig

__all__ = ["Config", "ContextGCConfig", "load_config", "get_config_path"]
