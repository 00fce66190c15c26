"""
相似指令提示卡片 (KOOK 卡片消息格式)
"""

import json
from typing import Dict, List, Sequence

from constants import SUGGESTION_CARD_TITLE

# 导入 CommandInstance，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from .models import CommandInstance


def describe_commands(commands: Sequence['CommandInstance']) -> List[Dict[str, str]]:
    """把指令转成 {name, description}, 有别名时附在名称后的括号里"""
    items = []
    for command in commands:
        name = command.name
        if command.aliases:
            name = f"{name} ({','.join(command.aliases)})"
        items.append({"name": name, "description": command.description})
    return items


def build_suggestion_card(commands: List[Dict[str, str]], input_text: str, avatar: str) -> str:
    content = "**指令** - *描述* \n"
    for item in commands:
        content += f"**{item['name']}** - *{item['description']}*\n"

    card = [
        {
            "type": "card",
            "size": "lg",
            "theme": "warning",
            "modules": [
                {
                    "type": "header",
                    "text": {"type": "plain-text", "content": SUGGESTION_CARD_TITLE},
                },
                {
                    "type": "section",
                    "text": {"type": "kmarkdown", "content": content},
                },
                {
                    "type": "context",
                    "elements": [
                        {"type": "plain-text", "content": "匹配触发："},
                        {"type": "image", "src": avatar, "alt": "", "size": "lg", "circle": False},
                        {"type": "kmarkdown", "content": input_text},
                    ],
                },
            ],
        }
    ]
    return json.dumps(card, ensure_ascii=False)
