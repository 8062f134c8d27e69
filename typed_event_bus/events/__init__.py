"""
事件系统模块

包含 EventBus 事件总线、EventRegistry 事件注册表与 Payload 基类。
"""

from .event_bus import EventBus, EventStats, Subscription, create_event_bus
from .payloads import BasePayload
from .registry import EventRegistry, PayloadValidationError

__all__ = [
    "BasePayload",
    "EventBus",
    "EventRegistry",
    "EventStats",
    "PayloadValidationError",
    "Subscription",
    "create_event_bus",
]
