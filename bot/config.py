# -*- coding: utf-8 -*-

"""
机器人配置 (YAML)
"""

from typing import Dict, List, Any
from dataclasses import asdict, dataclass, field
from pathlib import Path
import yaml
import logging

from constants import DEFAULT_COMMAND_PREFIX, FUZZY_THRESHOLD

DEFAULT_KOOK_BASE_URL = "https://www.kookapp.cn"

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """配置文件内容无效"""


@dataclass
class KookBotConfig:
    """KOOK 机器人连接配置, 取自开发者中心的 Verify Token 和 Token"""
    verify_token: str = ""
    token: str = ""
    base_url: str = DEFAULT_KOOK_BASE_URL
    timeout: int = 30


@dataclass
class BotConfig:
    bot_name: str = "泡泡"

    command_prefix: str = DEFAULT_COMMAND_PREFIX
    fuzzy_threshold: float = FUZZY_THRESHOLD

    bots: List[KookBotConfig] = field(default_factory=list)
    message_rate_limit: int = 30  # 每个机器人每分钟, 0 不限制

    plugins_dir: str = "plugins"
    plugins_enabled: List[str] = field(default_factory=list)
    # 插件模块名 -> 插件配置, channels / guilds / users 用于收窄插件情境
    plugin_configs: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BotConfig':
        if not isinstance(data, dict):
            raise ConfigError("配置文件顶层必须是映射")

        bots = []
        for index, item in enumerate(data.get('bots') or []):
            if not isinstance(item, dict):
                raise ConfigError(f"bots[{index}] 必须是映射")
            try:
                bots.append(KookBotConfig(**item))
            except TypeError as e:
                raise ConfigError(f"bots[{index}] 配置无效: {e}") from e

        defaults = cls()
        try:
            config = cls(
                bot_name=str(data.get('bot_name', defaults.bot_name)),
                command_prefix=data.get('command_prefix', defaults.command_prefix),
                fuzzy_threshold=float(data.get('fuzzy_threshold', defaults.fuzzy_threshold)),
                bots=bots,
                message_rate_limit=int(data.get('message_rate_limit', defaults.message_rate_limit)),
                plugins_dir=str(data.get('plugins_dir', defaults.plugins_dir)),
                plugins_enabled=list(data.get('plugins_enabled') or []),
                plugin_configs=dict(data.get('plugin_configs') or {}),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"配置项类型错误: {e}") from e

        config.validate()
        return config

    @classmethod
    def from_file(cls, config_path: str) -> 'BotConfig':
        """文件不存在时使用默认配置, 内容无效时抛出 ConfigError"""
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"找不到配置文件 {config_path}，使用默认配置")
            return cls()

        try:
            data = yaml.safe_load(path.read_text(encoding='utf-8')) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{config_path} 不是有效的 YAML: {e}") from e

        return cls.from_dict(data)

    def validate(self) -> None:
        if not isinstance(self.command_prefix, str) or not self.command_prefix:
            raise ConfigError("command_prefix 不能为空")
        if not 0 < self.fuzzy_threshold <= 1:
            raise ConfigError(f"fuzzy_threshold 必须在 (0, 1] 之间: {self.fuzzy_threshold}")
        for index, bot in enumerate(self.bots):
            if not bot.verify_token or not bot.token:
                raise ConfigError(f"bots[{index}] 缺少 verify_token 或 token")

    def save_to_file(self, config_path: str) -> None:
        path = Path(config_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(asdict(self), f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        logger.info(f"配置已写入 {config_path}")

    def get_plugin_config(self, plugin_name: str) -> Dict[str, Any]:
        return self.plugin_configs.get(plugin_name, {})
