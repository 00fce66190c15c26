# -*- coding: utf-8 -*-

"""
情境 (Scope)

情境组成一棵树, 每个节点带一个会话过滤条件, 子情境的条件 = 父情境条件 且 自身条件。
指令和事件监听器都登记在某个情境下, 情境销毁时一并移除。
"""

from typing import Callable, List, Optional
import logging

# 导入 MessageSession，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from commands.context import MessageSession

Predicate = Callable[['MessageSession'], bool]

logger = logging.getLogger(__name__)


class Scope:
    """指令与监听器的归属情境"""

    def __init__(self, name: str = "root", parent: Optional["Scope"] = None,
                 predicate: Optional[Predicate] = None):
        self.name = name
        self.parent = parent
        self.predicate = predicate
        self.children: List["Scope"] = []
        self._disposables: List[Callable[[], None]] = []
        self.disposed = False

        if parent is not None:
            parent.children.append(self)

    def __repr__(self) -> str:
        return f"<Scope {self.path}>"

    @property
    def path(self) -> str:
        if self.parent is None:
            return self.name
        return f"{self.parent.path}/{self.name}"

    def filter(self, session: 'MessageSession') -> bool:
        """当前会话是否在本情境内"""
        if self.disposed:
            return False
        if self.parent is not None and not self.parent.filter(session):
            return False
        return self.predicate is None or bool(self.predicate(session))

    def extend(self, name: str, predicate: Optional[Predicate] = None) -> "Scope":
        """创建子情境"""
        return Scope(name, parent=self, predicate=predicate)

    # 常用过滤条件
    def channel(self, *channel_ids: str) -> "Scope":
        ids = set(map(str, channel_ids))
        return self.extend(f"channel:{','.join(sorted(ids))}", lambda session: session.channel_id in ids)

    def guild(self, *guild_ids: str) -> "Scope":
        ids = set(map(str, guild_ids))
        return self.extend(f"guild:{','.join(sorted(ids))}", lambda session: session.guild_id in ids)

    def user(self, *user_ids: str) -> "Scope":
        ids = set(map(str, user_ids))
        return self.extend(f"user:{','.join(sorted(ids))}", lambda session: session.author.id in ids)

    def private(self) -> "Scope":
        return self.extend("private", lambda session: session.is_private)

    def on_dispose(self, callback: Callable[[], None]) -> None:
        """登记销毁时要执行的清理函数"""
        self._disposables.append(callback)

    def dispose(self) -> None:
        """销毁情境: 先销毁子情境, 再按登记的逆序执行清理函数"""
        if self.disposed:
            return

        for child in list(self.children):
            child.dispose()

        while self._disposables:
            callback = self._disposables.pop()
            try:
                callback()
            except Exception as e:
                logger.error(f"情境 {self.path} 清理出错: {e}", exc_info=True)

        self.disposed = True
        if self.parent is not None and self in self.parent.children:
            self.parent.children.remove(self)
        logger.debug(f"情境 {self.path} 已销毁")
