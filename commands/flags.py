"""
指令选项 (flag) 的声明与解析

声明方式:
    {"shout": bool, "times": FlagSpec(int, default=1, alias="t")}

解析规则:
    --name value / --name=value / -t value / -abc (多个布尔别名)
    布尔选项不会吞掉后面的参数, --name=false 可以显式关闭
    "--" 之后的内容全部当作位置参数
    未声明的选项放进 unknown_flags, 不会进入位置参数
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import InvalidFlagValue

_FALSE_STRINGS = ("false", "0", "no", "off", "")
_NEGATIVE_NUMBER = re.compile(r"^-\d+(\.\d+)?$")


@dataclass(frozen=True)
class FlagSpec:
    """单个选项的声明"""
    type: type = bool
    default: Any = None
    alias: Optional[str] = None   # 单字符短选项, 例如 "t" 对应 -t
    multiple: bool = False        # 允许重复出现, 值收集成列表
    description: str = ""

    def __post_init__(self):
        if self.type not in (bool, str, int, float):
            raise TypeError(f"不支持的选项类型: {self.type}")
        if self.alias is not None and len(self.alias) != 1:
            raise ValueError(f"选项别名必须是单个字符: {self.alias!r}")

    def initial(self) -> Any:
        if self.multiple:
            return list(self.default) if self.default is not None else []
        return self.default

    def convert(self, name: str, raw: str) -> Any:
        if self.type is bool:
            return raw.strip().lower() not in _FALSE_STRINGS
        if self.type is str:
            return raw
        try:
            return self.type(raw)
        except ValueError:
            raise InvalidFlagValue(name, raw, self.type) from None


FlagSchema = Mapping[str, Union[FlagSpec, type]]


@dataclass
class ParsedArgv:
    """选项解析结果"""
    flags: Dict[str, Any] = field(default_factory=dict)
    positionals: List[str] = field(default_factory=list)
    unknown_flags: Dict[str, List[Any]] = field(default_factory=dict)


def normalize_schema(schema: Optional[FlagSchema]) -> Dict[str, FlagSpec]:
    """把简写 {"name": int} 统一成 {"name": FlagSpec(int)}"""
    normalized = {}
    for name, spec in (schema or {}).items():
        if isinstance(spec, FlagSpec):
            normalized[name] = spec
        elif isinstance(spec, type):
            normalized[name] = FlagSpec(type=spec)
        else:
            raise TypeError(f"选项 {name} 的声明无效: {spec!r}")
    return normalized


def _is_flag(token: str) -> bool:
    return token.startswith("-") and len(token) > 1 and not _NEGATIVE_NUMBER.match(token)


def parse_flags(schema: Optional[FlagSchema], tokens: List[str]) -> ParsedArgv:
    specs = normalize_schema(schema)
    aliases = {spec.alias: name for name, spec in specs.items() if spec.alias}
    result = ParsedArgv(flags={name: spec.initial() for name, spec in specs.items()})

    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1

        if token == "--":
            result.positionals.extend(tokens[i:])
            break
        if not _is_flag(token):
            result.positionals.append(token)
            continue

        if token.startswith("--"):
            name, eq, inline = token[2:].partition("=")
            names = [name.replace("-", "_")]
        else:
            chars, eq, inline = token[1:].partition("=")
            names = [aliases.get(char, char) for char in chars]
        value = inline if eq else None

        for position, name in enumerate(names):
            last = position == len(names) - 1
            raw = value if last else None
            spec = specs.get(name)

            if spec is None:
                result.unknown_flags.setdefault(name, []).append(True if raw is None else raw)
                continue

            if spec.type is bool:
                parsed = True if raw is None else spec.convert(name, raw)
            else:
                # 非布尔选项没有写 "=" 时取下一个参数作为值
                if raw is None and last and i < len(tokens) and not _is_flag(tokens[i]):
                    raw = tokens[i]
                    i += 1
                parsed = spec.convert(name, "" if raw is None else raw)

            if spec.multiple:
                result.flags[name].append(parsed)
            else:
                result.flags[name] = parsed

    return result
