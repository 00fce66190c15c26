# plugins package
"""
示例插件, 在配置文件 plugins_enabled 中按模块名启用, 例如 plugins.greet_plugin
"""
