import logging
from typing import Dict, Iterable, List, Optional, Sequence

from rapidfuzz import process
from rapidfuzz.distance import DamerauLevenshtein

from bot.events import EventType
from constants import DEFAULT_COMMAND_PREFIX, FUZZY_THRESHOLD, NO_MATCH_REPLY, MessageType

from .card import build_suggestion_card, describe_commands
from .errors import HandlerExecutionError, NoMatchingCommand
from .flags import FlagSchema
from .models import CommandInstance
from .parse import split_command

# 导入 Bot / MessageSession 等，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from bot.base import Bot
    from bot.events import EventBus
    from bot.middleware import MiddlewareChain, Next
    from bot.scope import Scope
    from .context import MessageSession

# 获取模块级 logger
logger = logging.getLogger(__name__)


class Commander:
    """
    指令注册表与分发器

    每个情境对应一个指令列表。Commander 作为最前面的消息中间件,
    对带前缀的消息做解析: 完全匹配则执行, 否则回复相似指令提示。
    """

    def __init__(self, scope: 'Scope', event_bus: 'EventBus', middleware: 'MiddlewareChain',
                 prefix: str = DEFAULT_COMMAND_PREFIX, fuzzy_threshold: float = FUZZY_THRESHOLD):
        self.scope = scope
        self.event_bus = event_bus
        self.prefix = prefix
        self.fuzzy_threshold = fuzzy_threshold
        self._commands: Dict['Scope', List[CommandInstance]] = {}

        # 前置中间件保证指令得到优先处理
        self._remove_middleware = middleware.use(self.parse_message, prepend=True)
        logger.info(f"指令分发器初始化成功，指令前缀 '{prefix}'")

    # ---------- 注册 ----------

    def command(self, signature: str, description: str = "", flags: Optional[FlagSchema] = None,
                *, scope: Optional['Scope'] = None, aliases: Iterable[str] = ()) -> CommandInstance:
        """
        注册指令
        :param signature: 指令声明, 例如 "greet <name> [greeting]"
        :param scope: 所属情境, 默认为根情境
        """
        if scope is None:
            scope = self.scope
        command = CommandInstance(signature, description, flags, aliases)

        commands = self._commands.get(scope)
        if commands is None:
            self._commands[scope] = [command]
            # 在情境卸载的时候也移除注册的指令
            scope.on_dispose(lambda: self.unregister(scope))
        else:
            if any(existing.name == command.name for existing in commands):
                raise ValueError(f"情境 {scope.path} 中已存在指令 {command.name}")
            commands.append(command)

        logger.debug(f"注册指令: {command.signature} -> {scope.path}")
        return command

    def remove(self, command: CommandInstance) -> bool:
        for commands in self._commands.values():
            if command in commands:
                commands.remove(command)
                return True
        return False

    def unregister(self, scope: 'Scope') -> None:
        """移除某个情境下的所有指令"""
        removed = self._commands.pop(scope, None)
        if removed:
            logger.debug(f"移除情境 {scope.path} 的 {len(removed)} 个指令")

    def dispose(self) -> None:
        self._remove_middleware()
        self._commands.clear()
        logger.info("指令分发器已关闭")

    # ---------- 查询 ----------

    def all_commands(self) -> List[CommandInstance]:
        return [command for commands in list(self._commands.values()) for command in commands]

    def commands_for(self, session: 'MessageSession') -> List[CommandInstance]:
        """筛选符合当前会话情境的指令, 保持注册顺序"""
        visible = []
        for scope, commands in list(self._commands.items()):
            if scope.filter(session):
                visible.extend(commands)
        return visible

    @staticmethod
    def find(head: str, commands: Sequence[CommandInstance]) -> Optional[CommandInstance]:
        """名称或别名完全匹配, 先注册的优先"""
        for command in commands:
            if command.matches(head):
                return command
        return None

    def get_command(self, name: str, session: Optional['MessageSession'] = None) -> CommandInstance:
        commands = self.commands_for(session) if session is not None else self.all_commands()
        command = self.find(name, commands)
        if command is None:
            raise NoMatchingCommand(name)
        return command

    def suggest(self, head: str, candidates: Sequence[CommandInstance]) -> List[CommandInstance]:
        """
        按 Damerau-Levenshtein 归一化相似度查找相似指令 (忽略大小写),
        只保留相似度不低于阈值的结果, 相似度高的在前
        """
        if not candidates:
            return []
        results = process.extract(
            head,
            [command.name for command in candidates],
            scorer=DamerauLevenshtein.normalized_similarity,
            processor=str.lower,
            score_cutoff=self.fuzzy_threshold,
            limit=None,
        )
        return [candidates[index] for _, _, index in results]

    # ---------- 分发 ----------

    async def parse_message(self, bot: 'Bot', session: 'MessageSession', next_: 'Next'):
        """指令解析中间件"""
        if not session.content.startswith(self.prefix):
            return await next_()
        input_text = session.content[len(self.prefix):]

        try:
            response = await self.event_bus.bail(
                EventType.COMMAND_BEFORE_PARSE, input_text, bot, session, session=session)
        except Exception as e:
            logger.error(f"指令解析前置钩子出错，忽略该消息: {e}", exc_info=True)
            self.event_bus.emit(
                EventType.ERROR_OCCURRED,
                {"error": e, "input": input_text, "context": "command_before_parse"},
                source=__name__,
            )
            return None

        # 没有返回内容则正常解析, 返回字符串则覆盖要解析的内容, 返回 False 则取消该指令解析
        if response is not None:
            if isinstance(response, str):
                input_text = response
            elif not response:
                logger.debug(f"指令解析被取消: '{session.content}'")
                return None

        head, args_text = split_command(input_text)
        commands = self.commands_for(session)
        logger.debug(f"开始匹配指令: '{head}', 来自: {session.author.username}, 可用指令 {len(commands)} 个")

        command = self.find(head, commands)
        if command is not None:
            await self._execute(command, args_text, bot, session)
            return None

        try:
            await self._send_suggestions(head, commands, bot, session)
        except Exception as e:
            logger.error(f"发送指令提示失败: {e}", exc_info=True)
        return None

    async def _execute(self, command: CommandInstance, args_text: str,
                       bot: 'Bot', session: 'MessageSession') -> None:
        logger.info(f"指令 '{command.name}' 匹配成功，准备处理")
        try:
            result = await self.event_bus.serial(
                EventType.COMMAND_BEFORE_EXECUTE, command, bot, session, session=session)
            if isinstance(result, str):
                await bot.send_message(session.channel_id, result, quote=session.msg_id)
                return

            reply = await command.execute(args_text, bot, session)
            if reply:
                self.event_bus.parallel(EventType.COMMAND_EXECUTE, command, bot, session, session=session)
        except Exception as e:
            # 此处会把所有指令调用时发生的错误捕获并记录，比如 bot.send_message 遇到错误时
            error = HandlerExecutionError(command.name, e)
            logger.error(str(error), exc_info=True)
            self.event_bus.emit(
                EventType.ERROR_OCCURRED,
                {"error": error, "command": command.name, "context": "command_execute"},
                source=__name__,
            )

    async def _send_suggestions(self, head: str, commands: Sequence[CommandInstance],
                                bot: 'Bot', session: 'MessageSession') -> None:
        matches = self.suggest(head, commands)

        # 没有相似的，告诉用户找不到指令
        if not matches:
            await bot.send_message(session.channel_id, NO_MATCH_REPLY, quote=session.msg_id)
            return

        card = build_suggestion_card(describe_commands(matches), session.content, session.author.avatar)
        await bot.send_message(session.channel_id, card, quote=session.msg_id, msg_type=MessageType.CARD)
