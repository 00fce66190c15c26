import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from constants import INVALID_FLAG_REPLY, MISSING_ARGUMENT_REPLY

from .errors import CommandError, InvalidFlagValue, MissingRequiredArgument
from .flags import FlagSchema, normalize_schema, parse_flags
from .parse import split_signature, tokenize

# 导入 MessageSession / Bot，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from bot.base import Bot
    from .context import MessageSession

Handler = Callable[[Dict[str, Any], 'Bot', 'MessageSession'], Union[Optional[str], Awaitable[Optional[str]]]]

logger = logging.getLogger(__name__)


class CommandInstance:
    """
    一条已注册的指令

    由声明字符串创建, 例如 "greet <name> [greeting]":
    指令名为 greet, 必填参数 name, 选填参数 greeting
    """

    def __init__(self, signature: str, description: str = "",
                 flags: Optional[FlagSchema] = None, aliases: Iterable[str] = ()):
        name, required, optional = split_signature(signature)
        if not name:
            raise ValueError(f"无效的指令声明: {signature!r}")

        self.name = name
        self.signature = signature.strip()
        self.description = description
        self.flags = normalize_schema(flags)
        self.required_params: List[str] = required
        self.optional_params: List[str] = optional
        self.aliases: List[str] = []
        self.handler: Optional[Handler] = None
        self.alias(*aliases)

    def __repr__(self) -> str:
        return f"<CommandInstance {self.signature!r}>"

    def action(self, handler: Handler) -> Handler:
        """绑定处理函数, 也可以当作装饰器使用"""
        self.handler = handler
        return handler

    def alias(self, *names: str) -> "CommandInstance":
        for name in names:
            if name and name != self.name and name not in self.aliases:
                self.aliases.append(name)
        return self

    def matches(self, head: str) -> bool:
        return head == self.name or head in self.aliases

    def bind(self, positionals: List[str]) -> Dict[str, str]:
        """按声明顺序把位置参数绑定到参数名, 先必填后选填"""
        required_count = len(self.required_params)
        if len(positionals) < required_count:
            raise MissingRequiredArgument(self.name, self.required_params[len(positionals):])

        params = {}
        for i, param_name in enumerate(self.required_params):
            params[param_name] = positionals[i]

        i = 0
        while i < len(self.optional_params) and i + required_count < len(positionals):
            params[self.optional_params[i]] = positionals[i + required_count]
            i += 1

        missing = [name for name in self.required_params if name not in params]
        if missing:
            raise MissingRequiredArgument(self.name, missing)
        return params

    async def execute(self, args_text: str, bot: 'Bot', session: 'MessageSession') -> Optional[str]:
        """
        解析参数并执行处理函数
        :return: 处理函数返回的回复文本 (已发送), 没有回复时为 None
        """
        if self.handler is None:
            raise CommandError(f"指令 {self.name} 没有绑定处理函数")

        try:
            argv = parse_flags(self.flags, tokenize(args_text))
        except InvalidFlagValue as e:
            await bot.send_message(session.channel_id, f"{INVALID_FLAG_REPLY}: {e}", quote=session.msg_id)
            return None

        # 移除主指令
        if self.name in argv.positionals:
            argv.positionals.remove(self.name)

        try:
            params = self.bind(argv.positionals)
        except MissingRequiredArgument as e:
            logger.debug(str(e))
            await bot.send_message(session.channel_id, MISSING_ARGUMENT_REPLY, quote=session.msg_id)
            return None

        # "_" 是去掉主指令后的全部位置参数 (含 "--" 之后的内容), 同名的选项和参数优先
        args = {"_": argv.positionals, "unknown_flags": argv.unknown_flags, **argv.flags, **params}
        result = self.handler(args, bot, session)
        if inspect.isawaitable(result):
            result = await result

        if isinstance(result, str) and result:
            await bot.send_message(session.channel_id, result)
            return result
        return None
