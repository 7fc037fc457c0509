from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_PAGE_SIZE = 5
MAX_PAGE_SIZE = 50


@dataclass(frozen=True)
class Settings:
    telegram_token: str
    todo_api_url: str
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    http_timeout: float = 15.0
    summarizer_timeout: float = 60.0
    conversation_ttl: float = 900.0
    page_size: int = DEFAULT_PAGE_SIZE
    max_page_content_chars: int = 20000
    log_level: str = "INFO"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the Telegram task relay bot (todo backend + Gemini summaries)."
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file to load before reading the environment (default: ./.env).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides LOG_LEVEL).",
    )
    parser.add_argument(
        "--backend-url",
        default=None,
        help="Base URL of the todo backend (overrides TODO_API_URL).",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help=f"Default number of tasks per list page (overrides LIST_PAGE_SIZE, default: {DEFAULT_PAGE_SIZE}).",
    )
    return parser.parse_args(argv)


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _check_page_size(value: int) -> int:
    if not 1 <= value <= MAX_PAGE_SIZE:
        raise ConfigError(f"Page size must be between 1 and {MAX_PAGE_SIZE}, got {value}")
    return value


def load_settings(
    args: Optional[argparse.Namespace] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build Settings from the environment, letting CLI flags win.

    When ``environ`` is omitted the process environment is used, after loading
    ``.env`` (or ``--env-file``) through python-dotenv.
    """
    if environ is None:
        env_file = getattr(args, "env_file", None) if args else None
        if env_file:
            if not Path(env_file).exists():
                raise ConfigError(f"Env file not found: {env_file}")
            load_dotenv(env_file)
        else:
            load_dotenv()
        environ = os.environ

    token = (environ.get("TELEGRAM_BOT_TOKEN") or "").strip()
    if not token:
        raise ConfigError("TELEGRAM_BOT_TOKEN environment variable is required")

    backend_url = (getattr(args, "backend_url", None) or environ.get("TODO_API_URL") or "").strip()
    if not backend_url:
        raise ConfigError("TODO_API_URL environment variable is required")
    if not backend_url.startswith(("http://", "https://")):
        raise ConfigError(f"TODO_API_URL must be an http(s) URL, got {backend_url!r}")

    page_size = getattr(args, "page_size", None)
    if page_size is None:
        page_size = _read_int(environ, "LIST_PAGE_SIZE", DEFAULT_PAGE_SIZE)

    log_level = getattr(args, "log_level", None) or environ.get("LOG_LEVEL") or "INFO"

    return Settings(
        telegram_token=token,
        todo_api_url=backend_url.rstrip("/"),
        gemini_api_key=(environ.get("GEMINI_CREDS") or "").strip(),
        gemini_model=(environ.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL).strip(),
        gemini_base_url=(environ.get("GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL).rstrip("/"),
        http_timeout=_read_float(environ, "HTTP_TIMEOUT", 15.0),
        summarizer_timeout=_read_float(environ, "SUMMARIZER_TIMEOUT", 60.0),
        conversation_ttl=_read_float(environ, "CONVERSATION_TTL", 900.0),
        page_size=_check_page_size(page_size),
        max_page_content_chars=_read_int(environ, "MAX_PAGE_CONTENT_CHARS", 20000),
        log_level=log_level.upper(),
    )
