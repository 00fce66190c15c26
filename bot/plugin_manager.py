# -*- coding: utf-8 -*-

"""
插件管理器

每个插件拥有一个子情境, 插件注册的指令和事件处理器都挂在这个情境下,
卸载插件时销毁情境即可全部移除。
"""

import os
import sys
import importlib
import inspect
from typing import Dict, List, Any, Optional, Callable, Type, NamedTuple
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging

from .events import EventType
from .scope import Scope

# 导入 BotApp / Commander，使用前向引用避免循环导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from commands.commander import Commander
    from .app import BotApp


@dataclass
class PluginInfo:
    """插件信息"""
    name: str
    version: str
    description: str
    author: str
    enabled: bool = True
    dependencies: List[str] = field(default_factory=list)  # 需要先加载的插件模块名


class BasePlugin(ABC):
    """
    插件基类

    self.scope 是插件的情境, 可能已按配置收窄到部分服务器/频道/用户。
    """

    def __init__(self, app: 'BotApp', scope: Scope, plugin_config: Optional[Dict[str, Any]] = None):
        self.app = app
        self.scope = scope
        self.plugin_config = plugin_config or {}
        self.logger = logging.getLogger(f"Plugin.{self.name}")

    @property
    @abstractmethod
    def info(self) -> PluginInfo:
        pass

    @property
    def name(self) -> str:
        return self.info.name

    def on_load(self) -> None:
        """读取 plugin_config, 在注册指令之前调用"""

    def on_enable(self) -> None:
        """指令和事件处理器注册完成后调用"""

    def on_disable(self) -> None:
        """卸载开始时调用, 此时指令仍然可见"""

    def on_unload(self) -> None:
        """情境销毁之前最后一次调用"""


class CommandPlugin(BasePlugin):
    """提供指令的插件"""

    @abstractmethod
    def register_commands(self, commander: 'Commander') -> None:
        """在 self.scope 下注册插件提供的指令

        例: commander.command("greet <name>", "打招呼", scope=self.scope).action(self.greet)
        """


class EventPlugin(BasePlugin):
    """监听指令钩子或系统事件的插件"""

    @abstractmethod
    def get_event_handlers(self) -> Dict[EventType, List[Callable]]:
        """例: {EventType.COMMAND_BEFORE_EXECUTE: [self.check]}, 处理器只收到 self.scope 接受的会话"""


def scope_for_config(parent: Scope, name: str, plugin_config: Dict[str, Any]) -> Scope:
    """按插件配置中的 guilds / channels / users 收窄插件的情境"""
    scope = parent.extend(name)
    for key, narrow in (("guilds", Scope.guild), ("channels", Scope.channel), ("users", Scope.user)):
        ids = plugin_config.get(key)
        if ids:
            scope = narrow(scope, *ids)
    return scope


class _Loaded(NamedTuple):
    plugin: BasePlugin
    root: Scope  # 插件在应用根情境下的直接子情境


class PluginManager:
    """按配置加载插件, 并负责卸载时回收插件情境"""

    def __init__(self, app: 'BotApp'):
        self.app = app
        self.config = app.config
        self.plugins_dir = self.config.plugins_dir
        self.logger = logging.getLogger(__name__)
        self._loaded: Dict[str, _Loaded] = {}

    def load_plugins(self) -> None:
        """加载 plugins_enabled 中的全部插件, 单个插件失败只记录日志"""
        # 插件目录中的模块可以直接写文件名
        if os.path.isdir(self.plugins_dir) and self.plugins_dir not in sys.path:
            sys.path.insert(0, self.plugins_dir)

        for module_name in self.config.plugins_enabled:
            try:
                self.load_plugin_class(self._find_plugin_class(module_name), module_name)
            except Exception as e:
                self.logger.error(f"插件 {module_name} 加载失败: {e}")

        self.logger.info(f"已加载插件 {len(self._loaded)} 个: {', '.join(self._loaded) or '无'}")

    @staticmethod
    def _find_plugin_class(module_name: str) -> Type[BasePlugin]:
        """返回模块中定义的第一个可实例化的插件类"""
        module = importlib.import_module(module_name)
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if issubclass(obj, BasePlugin) and not inspect.isabstract(obj) and obj.__module__ == module.__name__:
                return obj
        raise ValueError(f"模块 {module_name} 中没有插件类")

    def load_plugin_class(self, plugin_class: Type[BasePlugin], plugin_name: Optional[str] = None) -> BasePlugin:
        """创建插件情境, 实例化插件并注册它的指令和事件处理器"""
        plugin_name = plugin_name or plugin_class.__module__
        if plugin_name in self._loaded:
            raise ValueError(f"插件 {plugin_name} 已加载")

        plugin_config = self.config.get_plugin_config(plugin_name)
        scope = scope_for_config(self.app.scope, plugin_name, plugin_config)
        root = scope
        while root.parent is not self.app.scope:
            root = root.parent

        try:
            plugin = plugin_class(self.app, scope, plugin_config)
            missing = [dep for dep in plugin.info.dependencies if dep not in self._loaded]
            if missing:
                raise ValueError(f"插件 {plugin_name} 缺少依赖: {', '.join(missing)}")

            plugin.on_load()
            if isinstance(plugin, CommandPlugin):
                plugin.register_commands(self.app.commander)
            if isinstance(plugin, EventPlugin):
                for event_type, handlers in plugin.get_event_handlers().items():
                    for handler in handlers:
                        self.app.event_bus.subscribe(event_type, handler, scope=scope)
        except Exception:
            # 已经注册的指令和监听器随情境一起移除
            root.dispose()
            raise

        self._loaded[plugin_name] = _Loaded(plugin, root)
        if plugin.info.enabled:
            plugin.on_enable()

        self.logger.info(f"插件 {plugin_name} v{plugin.info.version} 已加载, 情境 {scope.path}")
        return plugin

    def unload_plugin(self, plugin_name: str) -> None:
        loaded = self._loaded.pop(plugin_name, None)
        if loaded is None:
            self.logger.warning(f"插件 {plugin_name} 没有加载, 无需卸载")
            return

        try:
            loaded.plugin.on_disable()
            loaded.plugin.on_unload()
        except Exception as e:
            self.logger.error(f"插件 {plugin_name} 卸载回调出错: {e}", exc_info=True)
        finally:
            loaded.root.dispose()

        self.logger.info(f"插件 {plugin_name} 已卸载")

    def reload_plugin(self, plugin_name: str) -> BasePlugin:
        """卸载后重新导入模块并加载"""
        self.unload_plugin(plugin_name)
        module = sys.modules.get(plugin_name)
        if module is not None:
            importlib.reload(module)
        return self.load_plugin_class(self._find_plugin_class(plugin_name), plugin_name)

    def get_plugin(self, plugin_name: str) -> Optional[BasePlugin]:
        loaded = self._loaded.get(plugin_name)
        return loaded.plugin if loaded else None

    def get_loaded_plugins(self) -> List[str]:
        return list(self._loaded)

    def get_plugin_info(self, plugin_name: str) -> Optional[PluginInfo]:
        plugin = self.get_plugin(plugin_name)
        return plugin.info if plugin else None

    def cleanup(self) -> None:
        """按加载的逆序卸载全部插件"""
        for plugin_name in reversed(list(self._loaded)):
            self.unload_plugin(plugin_name)
