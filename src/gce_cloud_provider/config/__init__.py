"""Configuration package"""

from .file import ConfigFile, ConfigGlobal, read_config
from .logging import setup_logging
from .settings import Settings, get_settings

__all__ = [
    "ConfigFile",
    "ConfigGlobal",
    "read_config",
    "Settings",
    "get_settings",
    "setup_logging",
]
