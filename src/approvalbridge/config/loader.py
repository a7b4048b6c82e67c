# approvalbridge/config/loader.py
import logging
import os
from pathlib import Path
from typing import Iterable, Mapping

from dotenv import dotenv_values
from pydantic import SecretStr

from .config import AppSettings

# variable names used by earlier deployments of the bot server
LEGACY_ENV = {
    "TELEGRAM_BOT_TOKEN": ("telegram", "bot_token"),
    "TELEGRAM_CHAT_ID": ("telegram", "chat_id"),
}


def _existing(paths: Iterable[Path]) -> list[Path]:
    return [p for p in paths if p.exists()]


def _legacy_values(env_files: Iterable[Path]) -> dict[str, str]:
    # later files override earlier ones; the process environment overrides all files
    values: dict[str, str] = {}
    for path in env_files:
        values.update({k: v for k, v in dotenv_values(path).items() if v})
    values.update({k: v for k, v in os.environ.items() if v})
    return values


def _apply_legacy_env(settings: AppSettings, values: Mapping[str, str]) -> AppSettings:
    for var, (section, field) in LEGACY_ENV.items():
        value = values.get(var)
        if not value:
            continue
        target = getattr(settings, section)
        if getattr(target, field):
            continue
        setattr(target, field, SecretStr(value) if field == "bot_token" else value)

    port = values.get("PORT")
    if port and "APPROVALBRIDGE_PORT" not in values:
        settings.port = int(port)
    return settings


def load_settings() -> AppSettings:
    root = Path.cwd()
    cfg_dir = root / "config"

    # allow an explicit path via env var
    explicit = Path(os.environ["APPROVALBRIDGE_ENV_FILE"]) if "APPROVALBRIDGE_ENV_FILE" in os.environ else None

    candidates = _existing([
        explicit or Path("NON_EXISTENT"),  # placeholder if not set
        root / ".env",
        cfg_dir / ".env",
        cfg_dir / ".env.local",
    ])

    if not candidates and explicit:
        raise FileNotFoundError(f"Explicitly specified env file not found: {explicit}")

    if len(candidates) == 0:
        log = logging.getLogger("approvalbridge.config.loader")
        log.warning("No env files found; using defaults and env vars only.")

    if candidates:
        # Later files override earlier ones
        settings = AppSettings(_env_file=[str(p) for p in candidates])
    else:
        settings = AppSettings()
    return _apply_legacy_env(settings, _legacy_values(candidates))
