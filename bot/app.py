# -*- coding: utf-8 -*-

"""
机器人应用: 组装配置、事件总线、情境、中间件、指令分发器和插件
"""

import time
import logging
from typing import Any, Dict, List, Optional

from commands.commander import Commander
from commands.registry import register_builtin_commands

from .config import BotConfig
from .events import EventBus, EventType
from .middleware import MiddlewareChain
from .plugin_manager import PluginManager
from .scope import Scope
from .base import Bot
from .kook_bot import KookBot

# 导入 MessageSession，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from commands.context import MessageSession


class BotApp:
    """机器人应用"""

    def __init__(self, config: Optional[BotConfig] = None):
        # 加载配置
        self.config = config or BotConfig()

        # 初始化日志
        self.logger = logging.getLogger(__name__)

        # 根情境, 内置指令注册在这里
        self.scope = Scope("root")

        # 初始化事件总线
        self.event_bus = EventBus()

        # 消息中间件
        self.middleware = MiddlewareChain()

        # 初始化指令分发器
        self.commander = Commander(
            self.scope,
            self.event_bus,
            self.middleware,
            prefix=self.config.command_prefix,
            fuzzy_threshold=self.config.fuzzy_threshold,
        )
        register_builtin_commands(self.commander, self.scope)

        # 初始化插件管理器
        self.plugin_manager = PluginManager(self)

        # 传输层
        self.bots: List[Bot] = []

        # 运行状态
        self.running = False

        self.logger.info("机器人应用初始化完成")

    @classmethod
    def from_file(cls, config_path: str) -> "BotApp":
        return cls(BotConfig.from_file(config_path))

    def add_bot(self, bot: Bot) -> Bot:
        self.bots.append(bot)
        return bot

    def add_kook_bots(self) -> List[KookBot]:
        """按配置创建 KOOK 机器人"""
        return [
            self.add_bot(KookBot(self, bot_config, self.config.message_rate_limit))
            for bot_config in self.config.bots
        ]

    async def start(self) -> None:
        """启动应用"""
        if self.running:
            self.logger.warning("机器人已经在运行")
            return

        self.logger.info("正在启动机器人...")

        # 加载插件
        self.plugin_manager.load_plugins()

        for bot in self.bots:
            await bot.start()

        self.running = True

        # 发布启动事件
        self.event_bus.emit(EventType.BOT_STARTED, {"timestamp": time.time()}, source=__name__)
        self.logger.info("机器人启动成功")

    async def stop(self) -> None:
        """停止应用"""
        if not self.running:
            return

        self.logger.info("正在停止机器人...")
        self.running = False

        # 发布停止事件
        self.event_bus.emit(EventType.BOT_STOPPED, {"timestamp": time.time()}, source=__name__)
        await self.event_bus.wait_idle()

        for bot in self.bots:
            try:
                await bot.stop()
            except Exception as e:
                self.logger.error(f"停止 {bot.name} 时出错: {e}")

        # 清理插件
        self.plugin_manager.cleanup()

        self.logger.info("机器人已停止")

    async def close(self) -> None:
        """停止并释放分发器, 之后不能再使用"""
        await self.stop()
        self.scope.dispose()
        self.commander.dispose()
        self.event_bus.clear()

    async def dispatch(self, bot: Bot, session: 'MessageSession') -> Any:
        """把一条消息交给中间件链处理"""
        self.event_bus.emit(EventType.MESSAGE_RECEIVED, {"session": session}, source=bot.name)
        return await self.middleware.run(bot, session)

    def get_bot_info(self) -> Dict[str, Any]:
        """获取机器人信息"""
        return {
            "name": self.config.bot_name,
            "running": self.running,
            "bots": [bot.name for bot in self.bots],
            "plugins": self.plugin_manager.get_loaded_plugins(),
            "commands": [command.name for command in self.commander.all_commands()],
        }
