# -*- coding: utf-8 -*-

"""
事件系统

三种调用方式:
- bail: 依次调用监听器, 返回第一个不是 None 的结果
- serial: 依次调用监听器, 返回第一个非空结果, 之后的监听器不再调用
- parallel: 并发广播, 不等待也不关心返回值
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set
from dataclasses import dataclass, field
import asyncio
import inspect
import logging
from datetime import datetime

# 导入 Scope / MessageSession，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from commands.context import MessageSession
    from .scope import Scope


class EventType(Enum):
    """事件类型"""
    # 消息事件
    MESSAGE_RECEIVED = "message_received"

    # 指令钩子
    COMMAND_BEFORE_PARSE = "command/before-parse"
    COMMAND_BEFORE_EXECUTE = "command/before-execute"
    COMMAND_EXECUTE = "command/execute"

    # 系统事件
    BOT_STARTED = "bot_started"
    BOT_STOPPED = "bot_stopped"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class Event:
    """事件数据"""
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    source: Optional[str] = None


@dataclass
class _Listener:
    callback: Callable
    scope: Optional['Scope'] = None

    def accepts(self, session: Optional['MessageSession']) -> bool:
        if session is None or self.scope is None:
            return True
        return self.scope.filter(session)


class EventBus:
    """异步事件总线"""

    def __init__(self):
        self._listeners: Dict[EventType, List[_Listener]] = {}
        self._pending: Set[asyncio.Task] = set()
        self.logger = logging.getLogger(__name__)

    def subscribe(self, event_type: EventType, callback: Callable,
                  scope: Optional['Scope'] = None) -> Callable[[], None]:
        """
        订阅事件
        :param scope: 绑定的情境, 只接收该情境接受的会话, 情境销毁时自动退订
        :return: 退订函数
        """
        listener = _Listener(callback, scope)
        self._listeners.setdefault(event_type, []).append(listener)
        self.logger.debug(f"订阅事件 {event_type.value}: {getattr(callback, '__name__', callback)}")

        def unsubscribe() -> None:
            listeners = self._listeners.get(event_type, [])
            if listener in listeners:
                listeners.remove(listener)

        if scope is not None:
            scope.on_dispose(unsubscribe)
        return unsubscribe

    def listeners(self, event_type: EventType, session: Optional['MessageSession'] = None) -> List[Callable]:
        return [
            listener.callback
            for listener in list(self._listeners.get(event_type, []))
            if listener.accepts(session)
        ]

    async def bail(self, event_type: EventType, *args: Any,
                   session: Optional['MessageSession'] = None) -> Any:
        """依次调用, 返回第一个不是 None 的结果"""
        for callback in self.listeners(event_type, session):
            result = await _call(callback, *args)
            if result is not None:
                return result
        return None

    async def serial(self, event_type: EventType, *args: Any,
                     session: Optional['MessageSession'] = None) -> Any:
        """依次调用, 返回第一个非空结果 (None / False / 空字符串都视为空)"""
        for callback in self.listeners(event_type, session):
            result = await _call(callback, *args)
            if result is not None and result is not False and result != "":
                return result
        return None

    def parallel(self, event_type: EventType, *args: Any,
                 session: Optional['MessageSession'] = None) -> None:
        """并发广播, 立即返回"""
        callbacks = self.listeners(event_type, session)
        if not callbacks:
            return
        task = asyncio.ensure_future(self._broadcast(event_type, callbacks, args))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def emit(self, event_type: EventType, data: Dict[str, Any] = None, source: str = None) -> None:
        """发布系统事件, 监听器收到 Event 对象"""
        self.parallel(event_type, Event(type=event_type, data=data or {}, source=source))

    async def _broadcast(self, event_type: EventType, callbacks: List[Callable], args: tuple) -> None:
        tasks = []
        for callback in callbacks:
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    tasks.append(result)
            except Exception as e:
                self.logger.error(f"事件处理器出错 {event_type.value}: {e}")

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    self.logger.error(f"异步事件处理器出错 {event_type.value}: {result}")

    async def wait_idle(self) -> None:
        """等待所有广播任务结束"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def clear(self) -> None:
        """清空所有监听器"""
        self._listeners.clear()


async def _call(callback: Callable, *args: Any) -> Any:
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
