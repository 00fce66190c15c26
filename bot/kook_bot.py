# -*- coding: utf-8 -*-

"""
KOOK 机器人传输层 (HTTP API)
"""

from collections import OrderedDict
from typing import Any, Dict, Optional

import httpx

from commands.context import MessageSession
from constants import MessageType

from .base import Bot
from .config import KookBotConfig

# 导入 BotApp，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from .app import BotApp

CHALLENGE_EVENT_TYPE = 255
MAX_DIRECT_TARGETS = 1024  # 记住最近私聊过的用户数


class KookAPIError(Exception):
    """KOOK 接口返回非 0 状态码"""

    def __init__(self, code: Any, message: str = ""):
        self.code = code
        self.message = message
        super().__init__(f"KOOK 接口错误 [{code}]: {message}")


class KookBot(Bot):
    """KOOK 机器人"""

    def __init__(self, app: 'BotApp', config: KookBotConfig, message_rate_limit: int = 0,
                 client: Optional[httpx.AsyncClient] = None):
        super().__init__(f"kook-{config.verify_token}", message_rate_limit)
        self.app = app
        self.config = config
        # 外部传入的客户端由调用方负责关闭
        self._owns_client = client is None
        self.http = client or httpx.AsyncClient(
            base_url=config.base_url,
            headers={"Authorization": f"Bot {config.token}"},
            timeout=config.timeout,
        )
        self.self_info: Dict[str, Any] = {}
        # 最近私聊过的用户, 回复时走私信接口, 超出上限时淘汰最久未活动的
        self.max_direct_targets = MAX_DIRECT_TARGETS
        self._direct_targets: "OrderedDict[str, None]" = OrderedDict()

    @property
    def self_id(self) -> str:
        return str(self.self_info.get("id", ""))

    async def start(self) -> None:
        try:
            self.self_info = await self._request("GET", "/api/v3/user/me")
        except KookAPIError as e:
            raise KookAPIError(e.code, "机器人获取自身信息失败。") from e
        self.logger.info(f"KOOK 机器人已连接: {self.self_info.get('username', self.self_id)}")

    async def stop(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    def _remember_direct_target(self, user_id: str) -> None:
        self._direct_targets[user_id] = None
        self._direct_targets.move_to_end(user_id)
        while len(self._direct_targets) > self.max_direct_targets:
            self._direct_targets.popitem(last=False)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        response = await self.http.request(method, path, **kwargs)
        response.raise_for_status()
        payload = response.json()
        if payload.get("code") != 0:
            raise KookAPIError(payload.get("code"), payload.get("message", ""))
        return payload.get("data") or {}

    async def send_message(self, channel_id: str, content: str, *, quote: Optional[str] = None,
                           msg_type: MessageType = MessageType.TEXT) -> Optional[Dict[str, Any]]:
        # 频率限制检查
        if not self._check_rate_limit():
            self.logger.warning("消息发送频率超限")
            return None

        body = {"type": int(msg_type), "target_id": channel_id, "content": content}
        if quote:
            body["quote"] = quote

        if channel_id in self._direct_targets:
            path = "/api/v3/direct-message/create"
        else:
            path = "/api/v3/message/create"

        data = await self._request("POST", path, json=body)
        self.logger.info(f"发送消息到 {channel_id}: {content[:50]}...")
        return data

    async def handle_event(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        处理 KOOK 推送的事件
        :return: 需要原样响应给平台的内容 (仅 challenge 事件), 其他情况为 None
        """
        data = payload.get("d") or {}
        if data.get("verify_token") != self.config.verify_token:
            self.logger.warning("verify_token 不匹配，忽略事件")
            return None

        msg_type = int(data.get("type", 0))
        if msg_type == CHALLENGE_EVENT_TYPE and data.get("channel_type") == "WEBHOOK_CHALLENGE":
            return {"challenge": data.get("challenge")}

        if not MessageType.is_text_type(msg_type):
            return None

        session = MessageSession.from_kook_event(data)
        if session.author.bot or (self.self_id and session.author.id == self.self_id):
            return None

        if session.is_private:
            self._remember_direct_target(session.channel_id)

        self.logger.debug(f"收到消息: {session.content[:50]}")
        await self.app.dispatch(self, session)
        return None
