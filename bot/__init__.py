# -*- coding: utf-8 -*-

"""
机器人运行时: 配置、事件、情境、中间件、插件与传输层

BotApp / KookBot / ConsoleBot 依赖指令系统, 请从各自模块导入:
    from bot.app import BotApp
"""

from .config import BotConfig, ConfigError
from .events import EventBus, EventType
from .middleware import MiddlewareChain
from .scope import Scope

__all__ = ['BotConfig', 'ConfigError', 'EventBus', 'EventType', 'MiddlewareChain', 'Scope']
__version__ = "2.1.0"
