"""
事件注册表

记录事件名到 Payload 类型的映射，用于可选的运行时校验。
每个 EventBus 持有自己的注册表实例，互不影响。
"""

from typing import Any, Dict, Hashable, Optional, Type

from pydantic import BaseModel, ValidationError

from typed_event_bus.logging import get_logger


class PayloadValidationError(ValueError):
    """事件数据校验失败

    严格校验模式下，emit 的 payload 与注册的类型不符时抛出。
    """

    def __init__(self, event_name: Hashable, reason: str):
        self.event_name = event_name
        self.reason = reason
        super().__init__(f"事件 {event_name!r} 的数据校验失败: {reason}")


class EventRegistry:
    """
    事件类型注册表

    model 为 None 表示该事件不携带 payload。
    未注册的事件不做任何校验。
    """

    def __init__(self):
        self._events: Dict[Hashable, Optional[Type[BaseModel]]] = {}
        self.logger = get_logger("EventRegistry")

    # ==================== 注册 API ====================

    def register(self, event_name: Hashable, model: Optional[Type[BaseModel]] = None) -> None:
        """
        注册事件

        Args:
            event_name: 事件名称
            model: Pydantic Model 类型，None 表示无 payload

        Raises:
            TypeError: model 既不是 None 也不是 BaseModel 子类
        """
        if model is not None and not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise TypeError(f"事件 {event_name!r} 的类型必须是 BaseModel 子类或 None，收到: {model!r}")

        if event_name in self._events:
            existing = self._events[event_name]
            if existing is model:
                self.logger.debug(f"事件已注册（类型相同，跳过）: {event_name}")
                return
            self.logger.warning(
                f"事件已注册，将覆盖: {event_name} (旧: {_model_name(existing)}, 新: {_model_name(model)})"
            )

        self._events[event_name] = model
        self.logger.debug(f"注册事件: {event_name} -> {_model_name(model)}")

    def unregister(self, event_name: Hashable) -> bool:
        """
        移除事件注册

        Returns:
            是否成功移除（False 表示事件未注册）
        """
        if event_name in self._events:
            del self._events[event_name]
            self.logger.debug(f"移除事件: {event_name}")
            return True
        return False

    def clear(self) -> None:
        self._events.clear()

    # ==================== 查询 API ====================

    def get(self, event_name: Hashable) -> Optional[Type[BaseModel]]:
        """获取事件的 Model 类型，未注册或无 payload 时返回 None"""
        return self._events.get(event_name)

    def is_registered(self, event_name: Hashable) -> bool:
        return event_name in self._events

    def list_all_events(self) -> Dict[Hashable, Optional[Type[BaseModel]]]:
        return self._events.copy()

    # ==================== 校验 API ====================

    def validate(self, event_name: Hashable, payload: Any) -> None:
        """
        校验事件数据

        - 未注册事件：不校验
        - 无 payload 事件：payload 必须为 None
        - Model 事件：接受该 Model 的实例，或能通过 model_validate 的 dict

        Raises:
            PayloadValidationError: 校验失败
        """
        if event_name not in self._events:
            return

        model = self._events[event_name]
        if model is None:
            if payload is not None:
                raise PayloadValidationError(event_name, f"该事件不携带数据，收到: {type(payload).__name__}")
            return

        if isinstance(payload, model):
            return
        if isinstance(payload, dict):
            try:
                model.model_validate(payload)
            except ValidationError as e:
                raise PayloadValidationError(
                    event_name, f"{e.error_count()} 个字段错误 (期望类型: {model.__name__})"
                ) from e
            return

        raise PayloadValidationError(
            event_name, f"期望 {model.__name__} 或 dict，收到: {type(payload).__name__}"
        )


def _model_name(model: Optional[Type[BaseModel]]) -> str:
    return model.__name__ if model is not None else "None"
