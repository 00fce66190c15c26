# -*- coding: utf-8 -*-

"""
消息中间件链

中间件签名: async def middleware(bot, session, next_) -> Any
调用 next_() 把消息交给下一个中间件, 不调用则处理到此结束。
"""

from typing import Any, Awaitable, Callable, List

# 导入 Bot / MessageSession，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from commands.context import MessageSession
    from .base import Bot

Next = Callable[[], Awaitable[Any]]
Middleware = Callable[['Bot', 'MessageSession', Next], Awaitable[Any]]


class MiddlewareChain:
    """按顺序执行的消息中间件"""

    def __init__(self):
        self._middlewares: List[Middleware] = []

    def __len__(self) -> int:
        return len(self._middlewares)

    def use(self, middleware: Middleware, prepend: bool = False) -> Callable[[], None]:
        """
        注册中间件
        :param prepend: 放到最前面, 优先于已注册的中间件执行
        :return: 移除该中间件的函数
        """
        if prepend:
            self._middlewares.insert(0, middleware)
        else:
            self._middlewares.append(middleware)

        def remove() -> None:
            if middleware in self._middlewares:
                self._middlewares.remove(middleware)

        return remove

    async def run(self, bot: 'Bot', session: 'MessageSession') -> Any:
        middlewares = list(self._middlewares)

        async def call(index: int) -> Any:
            if index >= len(middlewares):
                return None

            async def next_() -> Any:
                return await call(index + 1)

            return await middlewares[index](bot, session, next_)

        return await call(0)
