"""
核心常量定义模块

包含API端口、配置文件路径、协议事件类型等全局常量。
"""

# API服务端口
PORT_API = 7860
HOST_API = "0.0.0.0"

# 配置文件路径
CONFIG_FILE = "config/config.json"

# 外层事件类型
EVENT_TEXT_START = "text-start"
EVENT_TEXT_DELTA = "text-delta"
EVENT_TEXT_END = "text-end"

# 派生事件类型
EVENT_DOCUMENT_UPDATED = "document-updated"
EVENT_TEXT_SEGMENT = "text-segment"
EVENT_PATCH_ERROR = "patch-error"
EVENT_ERROR = "error"

# 非法patch处理策略
POLICY_SKIP = "skip"
POLICY_HALT = "halt"
