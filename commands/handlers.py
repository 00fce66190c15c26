from typing import Any, Callable, Dict, Optional

from constants import NO_MATCH_REPLY

from .errors import NoMatchingCommand

# 导入 Commander / Bot / MessageSession，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from bot.base import Bot
    from .commander import Commander
    from .context import MessageSession
    from .models import CommandInstance


def format_command_detail(command: 'CommandInstance', prefix: str) -> str:
    lines = [f"{prefix}{command.signature}", command.description or "无描述"]
    if command.aliases:
        lines.append(f"别名: {', '.join(command.aliases)}")
    for name, spec in command.flags.items():
        flag = f"--{name.replace('_', '-')}"
        if spec.alias:
            flag = f"-{spec.alias}, {flag}"
        if spec.type is not bool:
            flag += f" <{spec.type.__name__}>"
        lines.append(f"  {flag}  {spec.description}".rstrip())
    return "\n".join(lines)


def make_help_handler(commander: 'Commander') -> Callable[..., Optional[str]]:
    """
    生成 "help" 指令的处理函数

    help          列出当前会话可用的指令
    help <指令>   显示指令用法、别名和选项
    """

    def handle_help(args: Dict[str, Any], bot: 'Bot', session: 'MessageSession') -> Optional[str]:
        name = args.get("command")
        if name:
            try:
                command = commander.get_command(name, session)
            except NoMatchingCommand:
                return NO_MATCH_REPLY
            return format_command_detail(command, commander.prefix)

        commands = commander.commands_for(session)
        if not commands:
            return None

        help_text = ["🤖 指令列表 🤖", ""]
        for command in commands:
            name = command.name
            if command.aliases:
                name = f"{name} ({','.join(command.aliases)})"
            help_text.append(f"- {commander.prefix}{name} - {command.description or '无描述'}")
        return "\n".join(help_text)

    return handle_help
