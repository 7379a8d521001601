#!/usr/bin/env python3
"""
开发环境启动脚本

功能:
1. 自动加载 settings.yaml / .env 配置
2. 支持热重载（监听 api/ 和 paperinsight/）
3. 可配置端口和主机

使用方式:
    python run_dev.py
    python run_dev.py --port 8080
    python run_dev.py --no-reload
    python run_dev.py --no-scheduler   # 本地调试时不跑定时抓取
"""

import argparse
import os


def main():
    parser = argparse.ArgumentParser(description="PaperInsight Backend Dev Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind (default: 8000)")
    parser.add_argument("--reload", action="store_true", default=True, help="Enable auto-reload (default: True)")
    parser.add_argument("--no-reload", dest="reload", action="store_false", help="Disable auto-reload")
    parser.add_argument("--no-scheduler", action="store_true", help="Disable the daily arXiv fetch")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"], help="Log level")

    args = parser.parse_args()

    if args.no_scheduler:
        # pydantic-settings 嵌套分隔符为 "__"
        os.environ["SCHEDULER__ENABLED"] = "false"
    os.environ.setdefault("LOG_LEVEL", args.log_level.upper())

    import uvicorn

    print(f"""
╔══════════════════════════════════════════════════════════════╗
║              📑 PaperInsight Backend                         ║
╠══════════════════════════════════════════════════════════════╣
║  Host:      {args.host:<47} ║
║  Port:      {args.port:<47} ║
║  Reload:    {str(args.reload):<47} ║
║  Scheduler: {str(not args.no_scheduler):<47} ║
║  Log:       {args.log_level:<47} ║
╠══════════════════════════════════════════════════════════════╣
║  API Docs: http://{args.host}:{args.port}/docs{' ' * 28}║
╚══════════════════════════════════════════════════════════════╝
    """)

    uvicorn.run(
        "main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        reload_dirs=["api", "paperinsight"] if args.reload else None,
    )


if __name__ == "__main__":
    main()
