from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Author:
    """消息发送者"""
    id: str
    username: str = "未知用户"
    avatar: str = ""
    bot: bool = False


@dataclass
class MessageSession:
    """
    消息会话, 由传输层把平台事件标准化后交给指令系统, 指令系统只读不写
    """
    content: str               # 消息原文
    channel_id: str            # 回复目标频道 (私聊时为对方用户 ID)
    msg_id: str                # 消息 ID, 回复时用于引用
    author: Author
    guild_id: Optional[str] = None
    channel_type: str = "GROUP"  # GROUP 频道消息, PERSON 私聊
    msg_type: int = 1
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_private(self) -> bool:
        return self.channel_type == "PERSON"

    @property
    def user_id(self) -> str:
        return self.author.id

    @classmethod
    def from_kook_event(cls, data: Dict[str, Any]) -> "MessageSession":
        """
        从 KOOK 事件 (webhook/websocket 推送中的 d 字段) 构造会话
        """
        extra = data.get("extra") or {}
        author_data = extra.get("author") or {}
        author = Author(
            id=str(author_data.get("id") or data.get("author_id", "")),
            username=author_data.get("nickname") or author_data.get("username") or "未知用户",
            avatar=author_data.get("avatar", ""),
            bot=bool(author_data.get("bot", False)),
        )
        channel_type = data.get("channel_type", "GROUP")
        # 私聊消息的 target_id 是机器人自己, 回复要发给对方
        if channel_type == "PERSON":
            channel_id = author.id
        else:
            channel_id = str(data.get("target_id", ""))

        return cls(
            content=data.get("content", ""),
            channel_id=channel_id,
            msg_id=str(data.get("msg_id", "")),
            author=author,
            guild_id=extra.get("guild_id"),
            channel_type=channel_type,
            msg_type=int(data.get("type", 1)),
            raw=data,
        )
