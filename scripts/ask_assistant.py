#!/usr/bin/env python
"""
어시스턴트 질의 스크립트: 실행 중인 서버에 질의 → A2UI 스트림 → HTML 출력.

실행:
    uv run python scripts/ask_assistant.py "Show low stock items"
    uv run python scripts/ask_assistant.py --url http://127.0.0.1:8000 --session local-dev-session "..."

종료 코드:
    0: done
    1: error (전송 실패 또는 error 메시지)
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx  # noqa: E402
import yaml  # noqa: E402
from dotenv import load_dotenv  # noqa: E402

from src.a2ui.panel import SurfacePanel  # noqa: E402
from src.a2ui.types import StreamStatus  # noqa: E402

DEFAULT_URL = "http://127.0.0.1:8000"
DEFAULT_READ_TIMEOUT = 120.0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ask the inventory assistant")
    parser.add_argument("query", help="Natural-language question")
    parser.add_argument("--url", default=DEFAULT_URL, help=f"Server base URL (default: {DEFAULT_URL})")
    parser.add_argument(
        "--session",
        default=None,
        help="Session token (default: first of ASSISTANT_SESSION_TOKENS)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(__file__).parent.parent / "default.yaml",
        help="Config file for cookie name and read timeout",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def load_client_settings(config_path: Path) -> tuple[str, float]:
    """(세션 쿠키 이름, 읽기 타임아웃)."""
    config: dict = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    cookie_name = config.get("auth", {}).get("session_cookie", "session_id")
    read_timeout = float(config.get("assistant", {}).get("read_timeout", DEFAULT_READ_TIMEOUT))
    return cookie_name, read_timeout


def default_session() -> str | None:
    tokens = [t.strip() for t in os.environ.get("ASSISTANT_SESSION_TOKENS", "").split(",")]
    return next((t for t in tokens if t), None)


async def run(args: argparse.Namespace) -> int:
    cookie_name, read_timeout = load_client_settings(args.config)
    session = args.session or default_session()
    cookies = {cookie_name: session} if session else {}

    panel = SurfacePanel()
    timeout = httpx.Timeout(10.0, read=read_timeout)
    async with httpx.AsyncClient(base_url=args.url, cookies=cookies, timeout=timeout) as client:
        await panel.ask(client, args.query)

    if panel.status == StreamStatus.ERROR:
        print(f"❌ {panel.error}", file=sys.stderr)
        rendered = panel.render()
        if rendered:
            print(rendered)
        return 1

    print(panel.render() or "(empty surface)")
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
