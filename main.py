"""Patch流中继服务入口"""
import uvicorn

from src.core import load_config
from src.api import create_app


def main() -> None:
    config = load_config()
    app = create_app(config)

    upstream_url = config["upstream"].get("url")
    if upstream_url:
        print(f"🔗 上游地址: {upstream_url}")
    else:
        print("⚠️ 未配置上游地址，/v1/relay 不可用")
    print(f"🛠️ 非法patch策略: {config['on_invalid_patch']}")
    print(f"🚀 服务启动: http://{config['host']}:{config['port']}")

    uvicorn.run(app, host=config["host"], port=config["port"], log_level="info")


if __name__ == "__main__":
    main()
