"""
事件 Payload 定义
"""

from .base import BasePayload

__all__ = ["BasePayload"]
