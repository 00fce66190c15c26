from typing import List

from .handlers import make_help_handler

# 导入 Commander / Scope，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from bot.scope import Scope
    from .commander import Commander
    from .models import CommandInstance

# 内置指令: (声明, 描述, 别名)
BUILTIN_COMMANDS = [
    ("help [command]", "显示指令列表或指定指令的用法", ("帮助",)),
]


def register_builtin_commands(commander: 'Commander', scope: 'Scope' = None) -> List['CommandInstance']:
    """在指定情境 (默认根情境) 注册内置指令"""
    handlers = {
        "help": make_help_handler(commander),
    }

    registered = []
    for signature, description, aliases in BUILTIN_COMMANDS:
        command = commander.command(signature, description, scope=scope, aliases=aliases)
        command.action(handlers[command.name])
        registered.append(command)
    return registered


def get_commands_info(commander: 'Commander') -> str:
    """获取所有命令的简要信息，用于调试"""
    info = []
    for i, command in enumerate(commander.all_commands()):
        alias_str = f" ({','.join(command.aliases)})" if command.aliases else ""
        info.append(f"{i+1}. {commander.prefix}{command.signature}{alias_str} - {command.description or '无描述'}")
    return "\n".join(info)


# 导出
__all__ = ["BUILTIN_COMMANDS", "register_builtin_commands", "get_commands_info"]
