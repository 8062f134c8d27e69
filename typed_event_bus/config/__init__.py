"""
配置模块

包含配置 Schema 与 TOML 加载。
"""

from .loader import ConfigError, load_config, load_config_from_string, write_default_config
from .schemas import EventBusConfig, LoggingConfig

__all__ = [
    "ConfigError",
    "EventBusConfig",
    "LoggingConfig",
    "load_config",
    "load_config_from_string",
    "write_default_config",
]
