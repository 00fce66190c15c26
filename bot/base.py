# -*- coding: utf-8 -*-

"""
传输层基类
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional
import logging
import time

from constants import MessageType


class Bot(ABC):
    """
    机器人传输层: 负责把平台事件转成 MessageSession 交给应用, 以及发送消息
    """

    def __init__(self, name: str, message_rate_limit: int = 0):
        self.name = name
        self.message_rate_limit = message_rate_limit
        self.logger = logging.getLogger(f"Bot.{name}")
        self._msg_timestamps: List[float] = []

    async def start(self) -> None:
        """启动时调用"""

    async def stop(self) -> None:
        """停止时调用"""

    @abstractmethod
    async def send_message(self, channel_id: str, content: str, *, quote: Optional[str] = None,
                           msg_type: MessageType = MessageType.TEXT) -> Any:
        """
        发送消息
        :param channel_id: 目标频道
        :param quote: 引用回复的消息 ID
        :param msg_type: 消息类型, 卡片消息的 content 为 JSON 字符串
        """

    def _check_rate_limit(self) -> bool:
        """检查消息发送频率限制"""
        if self.message_rate_limit <= 0:
            return True

        current_time = time.time()

        # 清理过期的时间戳
        self._msg_timestamps = [
            ts for ts in self._msg_timestamps
            if current_time - ts < 60
        ]

        # 检查是否超过限制
        if len(self._msg_timestamps) >= self.message_rate_limit:
            return False

        # 记录当前时间戳
        self._msg_timestamps.append(current_time)
        return True
