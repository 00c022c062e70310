"""Configuration and logging setup."""

from .logger import configure_logging, logger
from .settings import LookupConfig, load_app_config

__all__ = ["LookupConfig", "load_app_config", "configure_logging", "logger"]
