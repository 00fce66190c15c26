from enum import IntEnum, unique


@unique
class MessageType(IntEnum):
    TEXT = 1
    IMAGE = 2
    VIDEO = 3
    FILE = 4
    AUDIO = 8
    KMARKDOWN = 9
    CARD = 10

    @staticmethod
    def is_text_type(msg_type: int) -> bool:
        return msg_type in [MessageType.TEXT.value, MessageType.KMARKDOWN.value]


DEFAULT_COMMAND_PREFIX = "/"
FUZZY_THRESHOLD = 0.6  # 相似度低于该值的指令不会出现在提示里

# 面向用户的固定回复
MISSING_ARGUMENT_REPLY = "缺少必要参数"
INVALID_FLAG_REPLY = "参数格式错误"
NO_MATCH_REPLY = "找不到相关指令"
SUGGESTION_CARD_TITLE = "相似指令提示"
