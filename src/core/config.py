"""配置加载"""

import json
import os
from typing import Dict, Any

from .constants import CONFIG_FILE, HOST_API, PORT_API, POLICY_HALT, POLICY_SKIP


def _default_config() -> Dict[str, Any]:
    return {
        "host": HOST_API,
        "port": PORT_API,
        "on_invalid_patch": POLICY_SKIP,
        "debug": False,
        "cors_origins": ["*"],
        "upstream": {
            "url": "",
            "timeout": 120.0,
            "headers": {}
        }
    }


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """环境变量覆盖"""
    policy = os.getenv("STREAM_ON_INVALID_PATCH")
    if policy:
        config["on_invalid_patch"] = policy.strip().lower()

    debug = os.getenv("STREAM_DEBUG")
    if debug:
        config["debug"] = debug.strip().lower() in ("1", "true", "yes", "on")

    upstream_url = os.getenv("UPSTREAM_URL")
    if upstream_url:
        config["upstream"]["url"] = upstream_url.strip()

    if config["on_invalid_patch"] not in (POLICY_SKIP, POLICY_HALT):
        print(f"⚠️ 未知的 on_invalid_patch 策略: {config['on_invalid_patch']}，使用 {POLICY_SKIP}")
        config["on_invalid_patch"] = POLICY_SKIP

    return config


def load_config(path: str = CONFIG_FILE) -> Dict[str, Any]:
    """加载配置，文件不存在或损坏时返回默认配置"""
    default_config = _default_config()
    if not os.path.exists(path):
        return _apply_env_overrides(default_config)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)
            if "upstream" in config:
                default_config["upstream"].update(config["upstream"])
                del config["upstream"]
            default_config.update(config)
    except (OSError, ValueError) as e:
        print(f"⚠️ 加载配置失败: {e}")
    return _apply_env_overrides(default_config)
