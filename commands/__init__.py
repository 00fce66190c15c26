# commands package
"""
指令系统包

此包包含了指令系统的所有组件:
- parse: 分词与指令声明解析
- flags: 选项声明与解析
- context: 消息会话
- models: 指令实例
- commander: 指令注册表与分发器
- card: 相似指令提示卡片
- handlers / registry: 内置指令
"""
