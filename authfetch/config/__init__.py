"""Configuration module for authfetch."""

from authfetch.config.loader import get_config_path, load_config, save_config
from authfetch.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]
