"""
指令系统的异常定义
"""

from typing import Any, List


class CommandError(Exception):
    """指令系统异常基类"""


class MissingRequiredArgument(CommandError):
    """位置参数数量不足"""

    def __init__(self, command: str, missing: List[str]):
        self.command = command
        self.missing = list(missing)
        super().__init__(f"指令 {command} 缺少必要参数: {', '.join(self.missing)}")


class InvalidFlagValue(CommandError):
    """选项的值无法转换成声明的类型"""

    def __init__(self, flag: str, value: Any, expected: type):
        self.flag = flag
        self.value = value
        self.expected = expected
        super().__init__(f"--{flag} 需要 {expected.__name__} 类型的值, 收到 {value!r}")


class NoMatchingCommand(CommandError):
    """没有名称或别名完全匹配的指令"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"找不到指令: {name}")


class HandlerExecutionError(CommandError):
    """指令处理函数 (或其回复发送) 抛出的异常, 由 Commander 捕获并记录"""

    def __init__(self, command: str, original: BaseException):
        self.command = command
        self.original = original
        super().__init__(f"执行指令 '{command}' 时出错: {original}")
