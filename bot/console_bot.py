# -*- coding: utf-8 -*-

"""
控制台传输层, 本地调试指令用
"""

from typing import Any, Callable, List, Optional, TextIO, Tuple
import asyncio
import itertools
import json
import sys

from commands.context import Author, MessageSession
from constants import MessageType

from .base import Bot

# 导入 BotApp，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from .app import BotApp

EXIT_WORDS = ("exit", "quit")


class ConsoleBot(Bot):
    """从标准输入读取消息, 回复打印到标准输出"""

    def __init__(self, app: 'BotApp', user: str = "console", channel_id: str = "console",
                 output: Optional[TextIO] = None):
        super().__init__("console")
        self.app = app
        self.author = Author(id=user, username=user)
        self.channel_id = channel_id
        self.output = output or sys.stdout
        self.sent: List[Tuple[str, str, Optional[str], MessageType]] = []
        self._msg_ids = itertools.count(1)

    async def send_message(self, channel_id: str, content: str, *, quote: Optional[str] = None,
                           msg_type: MessageType = MessageType.TEXT) -> Any:
        self.sent.append((channel_id, content, quote, msg_type))
        if msg_type == MessageType.CARD:
            content = self._render_card(content)
        print(content, file=self.output)
        return None

    @staticmethod
    def _render_card(content: str) -> str:
        """把卡片 JSON 转成纯文本"""
        lines = []
        for card in json.loads(content):
            for module in card.get("modules", []):
                if "text" in module:
                    lines.append(module["text"].get("content", ""))
                for element in module.get("elements", []):
                    if element.get("type") != "image":
                        lines.append(element.get("content", ""))
        text = "\n".join(lines)
        return "\n".join(line.rstrip() for line in text.splitlines() if line.strip())

    def make_session(self, content: str) -> MessageSession:
        return MessageSession(
            content=content,
            channel_id=self.channel_id,
            msg_id=f"console-{next(self._msg_ids)}",
            author=self.author,
            channel_type="PERSON",
        )

    async def run(self, read_line: Callable[[str], str] = input) -> None:
        """循环读取输入直到 EOF 或 exit"""
        loop = asyncio.get_running_loop()
        while True:
            try:
                line = await loop.run_in_executor(None, read_line, "> ")
            except EOFError:
                break

            line = line.strip()
            if not line:
                continue
            if line in EXIT_WORDS:
                break
            try:
                await self.app.dispatch(self, self.make_session(line))
            except Exception as e:
                # 一条消息出错不结束调试会话
                self.logger.error(f"处理输入 '{line}' 时出错: {e}", exc_info=True)
