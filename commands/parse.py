"""
指令文本解析: 分词、签名解析、指令头拆分
"""

import re
from typing import List, Tuple

_REQUIRED_RE = re.compile(r"<([^>]+)>")
_OPTIONAL_RE = re.compile(r"\[([^\]]+)\]")


def tokenize(text: str) -> List[str]:
    """
    把一行文本切分成类似 shell 的参数列表

    - 反斜杠转义下一个字符
    - 双引号内的空格不切分, 引号本身不保留
    - 未闭合的引号不报错, 剩余部分都视为引号内
    """
    args = []
    in_quotes = False
    escape = False
    arg = ""

    for current in text:
        if escape:
            arg += current
            escape = False
        elif current == "\\":
            escape = True
        elif current == '"':
            in_quotes = not in_quotes
        elif current == " " and not in_quotes:
            if arg:
                args.append(arg)
                arg = ""
        else:
            arg += current

    if arg:
        args.append(arg)

    return args


def split_signature(declaration: str) -> Tuple[str, List[str], List[str]]:
    """
    拆分指令声明, 例如 "greet <name> [greeting]"
    :return: (指令名, 必填参数名列表, 选填参数名列表)
    """
    head, _, others = declaration.strip().partition(" ")
    required = _REQUIRED_RE.findall(others)
    optional = _OPTIONAL_RE.findall(others)
    return head, required, optional


def parse_signature(declaration: str) -> Tuple[List[str], List[str]]:
    """返回声明中的 (必填参数名, 选填参数名), 均保持声明顺序"""
    _, required, optional = split_signature(declaration)
    return required, optional


def split_command(text: str) -> Tuple[str, str]:
    """把去掉前缀的消息拆成 (指令头, 参数文本), 只按第一个空格拆分"""
    index = text.find(" ")
    if index == -1:
        return text, ""
    return text[:index], text[index + 1:]
