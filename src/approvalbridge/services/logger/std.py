from __future__ import annotations

from dataclasses import dataclass, field
import logging
import logging.handlers
import os
from pathlib import Path
import queue
from typing import Mapping, Optional

from approvalbridge.config.config import AppSettings

from .base import LogContext, LoggerService
from .formatters import JsonFormatter, SafeFormatter


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class LoggingConfig:
    """
    Configure sinks & formats.

    Attributes:
      root_ns: base logger name to use (`approvalbridge`).
      level: default level for root logger.
      use_json: True => JSON lines on console and file.
      file_logs: True => also write a rotating file under log_dir.
      enable_queue: True => offload file IO via QueueHandler/Listener (non-blocking).
      per_namespace_levels: optional map (e.g. {"approvalbridge.services.channel.poller": "DEBUG"}).
    """
    root_ns: str = "approvalbridge"
    level: str = "INFO"
    log_dir: str = "./logs"
    use_json: bool = False
    file_logs: bool = False
    enable_queue: bool = False
    per_namespace_levels: Mapping[str, str] = field(default_factory=dict)
    console_pattern: str = "%(asctime)s %(levelname)s \t%(name)s    key=%(key)s - %(message)s"
    file_pattern: str = "%(asctime)s %(levelname)s %(name)s %(key)s %(event_id)s %(message)s"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    @staticmethod
    def from_env() -> "LoggingConfig":
        return LoggingConfig(
            level=os.getenv("APPROVALBRIDGE_LOG_LEVEL", "INFO"),
            log_dir=os.getenv("APPROVALBRIDGE_LOG_DIR", "./logs"),
            use_json=os.getenv("APPROVALBRIDGE_LOG_JSON", "0") == "1",
            file_logs=os.getenv("APPROVALBRIDGE_LOG_FILE", "0") == "1",
        )

    @staticmethod
    def from_cfg(cfg: AppSettings, level: Optional[str] = None) -> "LoggingConfig":
        return LoggingConfig(
            level=level or cfg.logging.level,
            log_dir=cfg.logging.log_dir,
            use_json=cfg.logging.json_logs,
            file_logs=cfg.logging.file_logs,
            enable_queue=cfg.logging.file_logs,
        )


class _ContextAdapter(logging.LoggerAdapter):
    """
    Injects contextual fields into LogRecord via `extra`.
    Preserves original logger API (info, debug, etc.).
    """
    def process(self, msg, kwargs):
        extra = kwargs.get("extra") or {}
        merged = {**self.extra, **extra}
        kwargs["extra"] = merged
        return msg, kwargs


class StdLoggerService(LoggerService):
    def __init__(self, base: logging.Logger, *, cfg: LoggingConfig):
        self._base = base
        self._cfg = cfg
        self._listener: logging.handlers.QueueListener | None = None

    # --- LoggerService interface ---

    def base(self) -> logging.Logger:
        return self._base

    def for_namespace(self, ns: str) -> logging.Logger:
        return self._base.getChild(ns)

    def with_context(self, logger: logging.Logger, ctx: LogContext) -> logging.Logger:
        return _ContextAdapter(logger, ctx.as_extra())

    def for_poller(self) -> logging.Logger:
        return self.for_namespace("poller")

    def for_gateway(self) -> logging.Logger:
        return self.for_namespace("gateway")

    def for_sequencer(self) -> logging.Logger:
        return self.for_namespace("sequencer")

    def for_key(self, key: str) -> logging.Logger:
        return self.with_context(self.for_gateway(), LogContext(key=key))

    def shutdown(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None

    # --- builder ---

    @staticmethod
    def build(cfg: Optional[LoggingConfig] = None) -> "StdLoggerService":
        cfg = cfg or LoggingConfig.from_env()
        level = getattr(logging, cfg.level.upper(), logging.INFO)

        root = logging.getLogger(cfg.root_ns)
        # Reset handlers if rebuilding (app factory called more than once, tests)
        for h in list(root.handlers):
            root.removeHandler(h)
        root.setLevel(level)
        root.propagate = False

        for ns, lvl in cfg.per_namespace_levels.items():
            logging.getLogger(ns).setLevel(getattr(logging, str(lvl).upper(), logging.INFO))

        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(JsonFormatter() if cfg.use_json else SafeFormatter(cfg.console_pattern))
        root.addHandler(console)

        service = StdLoggerService(root, cfg=cfg)
        if not cfg.file_logs:
            return service

        # File handler (rotating)
        _ensure_dir(Path(cfg.log_dir))
        fh = logging.handlers.RotatingFileHandler(
            Path(cfg.log_dir) / "approvalbridge.log",
            maxBytes=cfg.max_bytes,
            backupCount=cfg.backup_count,
            encoding="utf-8",
        )
        fh.setFormatter(JsonFormatter() if cfg.use_json else SafeFormatter(cfg.file_pattern))
        fh.setLevel(level)

        if cfg.enable_queue:
            # Non-blocking file IO
            q: queue.Queue = queue.Queue(-1)
            root.addHandler(logging.handlers.QueueHandler(q))
            listener = logging.handlers.QueueListener(q, fh, respect_handler_level=True)
            listener.start()
            service._listener = listener
        else:
            root.addHandler(fh)
        return service
