"""
事件 Payload 基类

为事件 Payload 提供统一的字符串表示，供 EventBus 的 debug 日志使用。
"""

from typing import Any, List

from pydantic import BaseModel

# 超过该长度的字符串在日志中截断
MAX_STR_LENGTH = 50


class BasePayload(BaseModel):
    """
    事件 Payload 基类

    __str__ 输出 `ClassName(field=value, ...)`。
    子类通过覆盖 _debug_fields() 决定显示哪些字段（例如隐藏敏感字段）。

    Example:
        >>> class UserLogin(BasePayload):
        ...     user_id: str
        ...     token: str
        ...
        ...     def _debug_fields(self):
        ...         return ["user_id"]
        >>> str(UserLogin(user_id="123", token="secret"))
        'UserLogin(user_id="123")'
    """

    def _debug_fields(self) -> List[str]:
        """
        返回需要在日志中显示的字段名列表，顺序即显示顺序。

        Returns:
            字段名列表（默认为全部字段）
        """
        return list(self.__class__.model_fields.keys())

    def _format_field_value(self, value: Any) -> str:
        """格式化单个字段值"""
        if isinstance(value, BaseModel):
            return str(value)
        if isinstance(value, dict):
            if not value:
                return "{}"
            items = [f"{k}: {self._format_field_value(v)}" for k, v in value.items()]
            return "{" + ", ".join(items) + "}"
        if isinstance(value, (list, tuple)):
            return "[" + ", ".join(self._format_field_value(item) for item in value) + "]"
        if isinstance(value, str):
            if len(value) > MAX_STR_LENGTH:
                return f'"{value[: MAX_STR_LENGTH - 3]}..."'
            return f'"{value}"'
        return str(value)

    def __str__(self) -> str:
        parts = []
        for field_name in self._debug_fields():
            if hasattr(self, field_name):
                parts.append(f"{field_name}={self._format_field_value(getattr(self, field_name))}")
        return f"{self.__class__.__name__}({', '.join(parts)})"
