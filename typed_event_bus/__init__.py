"""
typed_event_bus

进程内同步发布/订阅事件总线。
"""

from typed_event_bus.config import ConfigError, EventBusConfig, LoggingConfig, load_config
from typed_event_bus.events import (
    BasePayload,
    EventBus,
    EventRegistry,
    EventStats,
    PayloadValidationError,
    create_event_bus,
)

__version__ = "0.1.0"

__all__ = [
    "BasePayload",
    "ConfigError",
    "EventBus",
    "EventBusConfig",
    "EventRegistry",
    "EventStats",
    "LoggingConfig",
    "PayloadValidationError",
    "create_event_bus",
    "load_config",
]
