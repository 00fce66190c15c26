#! /usr/bin/env python3
# -*- coding: utf-8 -*-

"""
指令机器人启动入口

    python main.py --create-config      生成 config.yaml
    python main.py -c config.yaml       加载插件和 KOOK 机器人, 在控制台输入指令调试
"""

import sys
import asyncio
import logging
from argparse import ArgumentParser
from pathlib import Path

from bot import ConfigError
from bot.app import BotApp
from bot.console_bot import ConsoleBot
from commands.registry import get_commands_info

__version__ = "2.1.0"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO", log_dir: str = "logs") -> None:
    """日志同时写入 logs/commander.log 和标准输出"""
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path / "commander.log", encoding='utf-8'),
            logging.StreamHandler(sys.stdout),
        ],
    )

    # 每个 HTTP 请求都打日志太吵
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


DEFAULT_CONFIG = """# 指令机器人配置

bot_name: "泡泡"

# 指令以该前缀开头才会被解析
command_prefix: "/"
# 相似指令提示的最低相似度 (0, 1]
fuzzy_threshold: 0.6

# KOOK 机器人, 留空则只在控制台调试
bots: []
#  - verify_token: "your_verify_token"
#    token: "your_bot_token"
#    base_url: "https://www.kookapp.cn"

# 每个机器人每分钟最多发送的消息数, 0 表示不限制
message_rate_limit: 30

plugins_dir: "plugins"
plugins_enabled:
  - "plugins.greet_plugin"
  - "plugins.dice_plugin"

# 插件配置, channels / guilds / users 可以限制插件生效的范围
plugin_configs:
  plugins.dice_plugin:
    max_sides: 100
"""


def create_default_config(path: str = "config.yaml") -> bool:
    """写入默认配置, 文件已存在时不覆盖"""
    config_path = Path(path)
    if config_path.exists():
        print(f"{path} 已存在, 未做修改")
        return False

    config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    print(f"已生成 {path}, 修改后重新启动即可")
    return True


async def run(app: BotApp) -> None:
    console = app.add_bot(ConsoleBot(app))
    await app.start()
    logging.getLogger(__name__).debug("已注册指令:\n" + get_commands_info(app.commander))
    try:
        await console.run()
    finally:
        await app.close()


def main():
    parser = ArgumentParser(description=f"指令机器人 v{__version__}")
    parser.add_argument('-c', '--config', default='config.yaml', help='配置文件路径')
    parser.add_argument('-l', '--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='日志级别')
    parser.add_argument('--create-config', action='store_true', help='生成默认配置文件后退出')
    args = parser.parse_args()

    if args.create_config:
        create_default_config(args.config)
        return

    if not Path(args.config).exists():
        parser.error(f"找不到配置文件 {args.config}, 可以先用 --create-config 生成")

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)
    logger.info(f"指令机器人 v{__version__}, 配置 {args.config}")

    try:
        app = BotApp.from_file(args.config)
        app.add_kook_bots()
        logger.info(f"输入 {app.commander.prefix}help 查看指令, exit 退出")
        asyncio.run(run(app))
    except ConfigError as e:
        logger.error(f"配置无效: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("收到中断信号")
    except Exception as e:
        logger.error(f"运行出错: {e}", exc_info=True)
        sys.exit(1)

    logger.info("已退出")


if __name__ == "__main__":
    main()
