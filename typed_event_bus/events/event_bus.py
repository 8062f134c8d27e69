"""
事件总线实现

进程内的同步发布/订阅：
- 按注册顺序同步分发（emit 开始时对处理器列表做快照）
- 订阅返回取消函数，精确移除本次注册
- once 一次性订阅
- 默认快速失败，可选错误隔离(error_isolate)
- 可选 payload 校验(EventRegistry)与统计功能(EventStats)

使用示例:
    from typed_event_bus import EventBus

    bus = EventBus()

    def on_login(payload):
        print(payload["user_id"])

    unsubscribe = bus.subscribe("user.login", on_login)
    bus.emit("user.login", {"user_id": "123"})
    unsubscribe()
"""

import copy
import inspect
import threading
import time
import types
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Type

from pydantic import BaseModel

from typed_event_bus.config.schemas import EventBusConfig
from typed_event_bus.events.payloads.base import BasePayload
from typed_event_bus.events.registry import EventRegistry, PayloadValidationError
from typed_event_bus.logging import get_logger

Handler = Callable[[Any], None]
Unsubscribe = Callable[[], None]


@dataclass
class EventStats:
    """
    事件统计信息

    Attributes:
        emit_count: 发布次数（仅统计有监听器的发布）
        listener_count: 最近一次发布时的监听器数量
        error_count: 处理器错误次数
        last_emit_time: 最后发布时间(Unix时间戳,秒)
        last_error_time: 最后错误时间(Unix时间戳,秒)
        total_execution_time_ms: 总执行时间(毫秒)
    """

    emit_count: int = 0
    listener_count: int = 0
    error_count: int = 0
    last_emit_time: float = 0
    last_error_time: float = 0
    total_execution_time_ms: float = 0


@dataclass(eq=False)
class Subscription:
    """
    一次订阅对应的条目

    同一个处理器订阅两次会产生两个独立条目，条目之间按对象身份区分。
    once 订阅存放的是包装函数，original_handler 仅用于日志。
    """

    event_name: Hashable
    handler: Handler
    original_handler: Optional[Handler] = None


def _same_handler(a: Callable, b: Callable) -> bool:
    """按身份比较处理器；绑定方法每次取属性都会新建对象，改为比较 __self__ 与 __func__"""
    if a is b:
        return True
    if inspect.ismethod(a) and inspect.ismethod(b):
        return a.__self__ is b.__self__ and a.__func__ is b.__func__
    if isinstance(a, types.BuiltinMethodType) and isinstance(b, types.BuiltinMethodType):
        return a.__self__ is b.__self__ and a.__name__ == b.__name__
    return False


def _handler_name(handler: Callable) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None) or repr(handler)


class EventBus:
    """
    同步事件总线

    核心功能:
    - subscribe / unsubscribe / once / emit / clear / listener_count
    - 每个实例状态完全独立，不提供全局单例
    - 可在多线程间共享：映射的修改与 emit 的快照步骤由 RLock 保护，处理器在锁外执行
    """

    def __init__(self, validation: str = "off", error_isolate: bool = False, enable_stats: bool = False):
        """
        初始化事件总线

        Args:
            validation: payload 校验模式（off / warn / strict）
            error_isolate: emit 的默认错误策略
            enable_stats: 是否启用统计功能
        """
        if validation not in ("off", "warn", "strict"):
            raise ValueError(f"validation 必须是 off / warn / strict 之一，收到: {validation!r}")

        self._handlers: Dict[Hashable, List[Subscription]] = {}
        self._stats: Dict[Hashable, EventStats] = defaultdict(EventStats)
        self._lock = threading.RLock()
        self.registry = EventRegistry()
        self.validation = validation
        self.error_isolate = error_isolate
        self.enable_stats = enable_stats
        self.logger = get_logger("EventBus")
        self.logger.debug(
            f"EventBus 初始化完成 (validation={validation}, error_isolate={error_isolate}, stats={enable_stats})"
        )

    @classmethod
    def from_config(cls, config: EventBusConfig) -> "EventBus":
        """根据 EventBusConfig 创建事件总线"""
        return cls(
            validation=config.validation,
            error_isolate=config.error_isolate,
            enable_stats=config.enable_stats,
        )

    # ==================== 订阅 API ====================

    def subscribe(self, event_name: Hashable, handler: Handler) -> Unsubscribe:
        """
        订阅事件

        Args:
            event_name: 事件名称
            handler: 处理器，接收唯一参数 payload

        Returns:
            取消函数：只移除本次注册，重复调用无副作用

        Raises:
            TypeError: handler 不可调用
        """
        if not callable(handler):
            raise TypeError(f"事件处理器必须可调用，收到: {type(handler).__name__}")

        subscription = Subscription(event_name=event_name, handler=handler)
        self._add(subscription)
        self.logger.debug(f"注册事件监听器: {event_name} -> {_handler_name(handler)}")
        return self._make_unsubscribe(subscription)

    on = subscribe

    def unsubscribe(self, event_name: Hashable, handler: Handler) -> None:
        """
        取消订阅

        移除一个与 handler 相同的条目；重复注册时移除最近的一次。
        事件不存在或 handler 未注册时静默返回。

        Args:
            event_name: 事件名称
            handler: 要移除的处理器
        """
        with self._lock:
            subscriptions = self._handlers.get(event_name)
            if not subscriptions:
                return
            for i in range(len(subscriptions) - 1, -1, -1):
                if _same_handler(subscriptions[i].handler, handler):
                    subscriptions.pop(i)
                    break
            else:
                return
            if not subscriptions:
                del self._handlers[event_name]
        self.logger.debug(f"移除事件监听器: {event_name} -> {_handler_name(handler)}")

    off = unsubscribe

    def once(self, event_name: Hashable, handler: Handler) -> Unsubscribe:
        """
        一次性订阅

        注册一个包装函数：第一次触发时先移除自身，再调用 handler。
        即使被多个嵌套 emit 的快照捕获，handler 也只会执行一次。

        Returns:
            取消函数：在事件触发前调用可取消这次一次性订阅
        """
        if not callable(handler):
            raise TypeError(f"事件处理器必须可调用，收到: {type(handler).__name__}")

        fired = False

        def once_wrapper(payload: Any) -> None:
            nonlocal fired
            with self._lock:
                if fired:
                    return
                fired = True
                self._remove(subscription)
            self.logger.debug(f"一次性监听器已触发: {event_name} -> {_handler_name(handler)}")
            handler(payload)

        subscription = Subscription(event_name=event_name, handler=once_wrapper, original_handler=handler)
        self._add(subscription)
        self.logger.debug(f"注册一次性事件监听器: {event_name} -> {_handler_name(handler)}")
        return self._make_unsubscribe(subscription)

    def _add(self, subscription: Subscription) -> None:
        with self._lock:
            self._handlers.setdefault(subscription.event_name, []).append(subscription)

    def _remove(self, subscription: Subscription) -> bool:
        """按条目身份移除，返回是否找到"""
        with self._lock:
            subscriptions = self._handlers.get(subscription.event_name)
            if not subscriptions:
                return False
            for i, candidate in enumerate(subscriptions):
                if candidate is subscription:
                    subscriptions.pop(i)
                    if not subscriptions:
                        del self._handlers[subscription.event_name]
                    return True
            return False

    def _make_unsubscribe(self, subscription: Subscription) -> Unsubscribe:
        def unsubscribe() -> None:
            if self._remove(subscription):
                handler = subscription.original_handler or subscription.handler
                self.logger.debug(f"移除事件监听器: {subscription.event_name} -> {_handler_name(handler)}")

        return unsubscribe

    # ==================== 发布 API ====================

    def emit(self, event_name: Hashable, payload: Any = None, error_isolate: Optional[bool] = None) -> None:
        """
        发布事件

        按注册顺序同步调用 emit 开始时快照中的所有处理器。
        分发过程中新增或移除的订阅从下一次 emit 起生效。

        Args:
            event_name: 事件名称
            payload: 事件数据，无数据的事件传 None（默认）
            error_isolate: 错误隔离策略，None 时使用实例默认值
                - False: 第一个异常直接传播给调用者，后续处理器不再执行
                - True: 记录错误日志并继续执行后续处理器

        Raises:
            PayloadValidationError: strict 模式下 payload 与注册类型不符
            Exception: error_isolate=False 时处理器抛出的异常
        """
        if self.validation != "off":
            self._validate_payload(event_name, payload)

        with self._lock:
            snapshot = list(self._handlers.get(event_name, ()))
            if snapshot and self.enable_stats:
                stats = self._stats[event_name]
                stats.emit_count += 1
                stats.last_emit_time = time.time()
                stats.listener_count = len(snapshot)

        if not snapshot:
            self.logger.debug(f"事件 {event_name} 没有监听器")
            return

        if error_isolate is None:
            error_isolate = self.error_isolate

        self.logger.opt(lazy=True).debug(
            "{}", lambda: self._format_event_log(event_name, payload, len(snapshot))
        )

        start_time = time.perf_counter()
        try:
            for subscription in snapshot:
                self._call_handler(subscription, event_name, payload, error_isolate)
        finally:
            if self.enable_stats:
                execution_time = (time.perf_counter() - start_time) * 1000
                with self._lock:
                    self._stats[event_name].total_execution_time_ms += execution_time

    def _call_handler(self, subscription: Subscription, event_name: Hashable, payload: Any, error_isolate: bool):
        try:
            subscription.handler(payload)
        except Exception:
            if self.enable_stats:
                with self._lock:
                    self._stats[event_name].error_count += 1
                    self._stats[event_name].last_error_time = time.time()
            if not error_isolate:
                raise
            handler = subscription.original_handler or subscription.handler
            self.logger.exception(f"事件处理器执行错误 (事件: {event_name}, 处理器: {_handler_name(handler)})")

    def _validate_payload(self, event_name: Hashable, payload: Any) -> None:
        try:
            self.registry.validate(event_name, payload)
        except PayloadValidationError as e:
            if self.validation == "strict":
                raise
            self.logger.warning(str(e))

    def _format_event_log(self, event_name: Hashable, payload: Any, listener_count: int) -> str:
        """格式化事件日志，BasePayload 使用其自带的字符串表示"""
        if payload is None:
            body = "<无数据>"
        elif isinstance(payload, BasePayload):
            body = str(payload)
        else:
            body = repr(payload)
        return f"[{event_name}] -> {listener_count} 个监听器: {body}"

    # ==================== 清理与查询 ====================

    def clear(self, event_name: Optional[Hashable] = None) -> None:
        """
        清除事件监听器

        Args:
            event_name: 事件名称；为 None 时清除所有事件的监听器
        """
        with self._lock:
            if event_name is None:
                self._handlers.clear()
            else:
                self._handlers.pop(event_name, None)

        if event_name is None:
            self.logger.info("已清除所有事件监听器")
        else:
            self.logger.debug(f"已清除事件监听器: {event_name}")

    def listener_count(self, event_name: Hashable) -> int:
        """
        获取指定事件的监听器数量（含重复注册与一次性订阅）

        Returns:
            监听器数量，从未订阅或已清除的事件返回 0
        """
        with self._lock:
            return len(self._handlers.get(event_name, ()))

    def list_events(self) -> List[Hashable]:
        """列出当前有监听器的事件"""
        with self._lock:
            return list(self._handlers.keys())

    def register_event(self, event_name: Hashable, model: Optional[Type[BaseModel]] = None) -> None:
        """登记事件的 payload 类型，仅在 validation 不为 off 时生效"""
        self.registry.register(event_name, model)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(subscriptions) for subscriptions in self._handlers.values())

    def __contains__(self, event_name: Hashable) -> bool:
        with self._lock:
            return event_name in self._handlers

    # ==================== 统计 ====================

    def get_stats(self, event_name: Hashable) -> Optional[EventStats]:
        """
        获取事件统计信息

        Returns:
            统计信息的拷贝，未启用统计或无记录时返回 None
        """
        if not self.enable_stats:
            return None
        with self._lock:
            stats = self._stats.get(event_name)
            return copy.copy(stats) if stats is not None else None

    def get_all_stats(self) -> Dict[Hashable, EventStats]:
        if not self.enable_stats:
            return {}
        with self._lock:
            return {name: copy.copy(stats) for name, stats in self._stats.items()}

    def reset_stats(self, event_name: Optional[Hashable] = None) -> None:
        """
        重置统计信息

        Args:
            event_name: 事件名称，为 None 时重置所有
        """
        with self._lock:
            if event_name is None:
                self._stats.clear()
            else:
                self._stats.pop(event_name, None)


def create_event_bus(config: Optional[EventBusConfig] = None) -> EventBus:
    """
    创建新的事件总线实例

    Args:
        config: 可选配置，为 None 时使用默认值
    """
    if config is None:
        return EventBus()
    return EventBus.from_config(config)
