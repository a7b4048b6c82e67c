# approvalbridge/__main__.py
from __future__ import annotations

import argparse
import sys

import uvicorn

from approvalbridge.config.runtime import get_settings
from approvalbridge.server.app_factory import create_app

"""
Approval Bridge CLI

  python -m approvalbridge serve --port 3000 --static-dir ./public

Settings come from .env files and APPROVALBRIDGE_* variables (see
approvalbridge.config.config.AppSettings); flags given here override them.
Run a single worker: pending approvals and the event cursor live in process
memory, and two processes would race each other on the Telegram update feed.
"""


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="approvalbridge")
    sub = parser.add_subparsers(dest="cmd", required=True)

    serve = sub.add_parser("serve", help="Run the approval bridge HTTP server (blocking).")
    serve.add_argument("--host", default=None, help="Bind host (default: settings.host).")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: settings.port).")
    serve.add_argument("--static-dir", default=None, help="Directory with the SPA (index.html).")
    serve.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error"],
        help="Application log level (default: settings.logging.level).",
    )
    serve.add_argument(
        "--uvicorn-log-level",
        default="warning",
        choices=["critical", "error", "warning", "info", "debug", "trace"],
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    args = build_arg_parser().parse_args(argv)

    if args.cmd == "serve":
        cfg = get_settings()
        if args.static_dir:
            cfg.site.static_dir = args.static_dir
        host = args.host or cfg.host
        port = args.port or cfg.port

        app = create_app(cfg=cfg, log_level=args.log_level)

        print(f"Server started at http://{host}:{port}")
        uvicorn.run(app, host=host, port=port, log_level=args.uvicorn_log_level, workers=1)
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
