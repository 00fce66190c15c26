"""Tests for the CLI helpers."""

import yaml

from bot.config import BotConfig
from main import DEFAULT_CONFIG, create_default_config


def test_default_config_is_valid():
    config = BotConfig.from_dict(yaml.safe_load(DEFAULT_CONFIG))
    assert config.command_prefix == "/"
    assert config.plugins_enabled == ["plugins.greet_plugin", "plugins.dice_plugin"]
    assert config.get_plugin_config("plugins.dice_plugin") == {"max_sides": 100}


def test_create_default_config(tmp_path):
    path = tmp_path / "config.yaml"
    assert create_default_config(str(path))
    assert path.read_text(encoding="utf-8") == DEFAULT_CONFIG

    path.write_text("command_prefix: '!'\n", encoding="utf-8")
    assert not create_default_config(str(path))
    assert path.read_text(encoding="utf-8") == "command_prefix: '!'\n"
