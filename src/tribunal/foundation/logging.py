"""Logging configuration for Tribunal.

Defaults:
- WARNING level (quiet operation)
- --debug flag: DEBUG level with timestamps and module names
- TRIBUNAL_DEBUG=true or TRIBUNAL_LOG_LEVEL=INFO env vars: override for CI/scripting
- Optional session logs in .tribunal/logs/ with rotation

Priority for level resolution (highest to lowest):
    1. Explicit `level` parameter
    2. TRIBUNAL_LOG_LEVEL env var
    3. TRIBUNAL_DEBUG=true env var
    4. `debug=True` parameter (--debug flag)
    5. WARNING (default)
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_DEBUG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
_DEFAULT_FORMAT = "%(name)s: %(message)s"

# Chatty even at INFO; judge calls go through httpx
_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "anthropic",
    "openai",
    "matplotlib",
    "PIL",
    "asyncio",
)

_MAX_LOG_SESSIONS = 10


def _get_log_directory() -> Path:
    """Get or create .tribunal/logs/ under the working directory."""
    log_dir = Path.cwd() / ".tribunal" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _cleanup_old_logs(log_dir: Path, max_sessions: int = _MAX_LOG_SESSIONS) -> None:
    """Remove old session logs, keeping only the most recent N."""
    log_files = sorted(
        log_dir.glob("session_*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    for old_log in log_files[max_sessions:]:
        try:
            old_log.unlink()
        except OSError:
            logging.getLogger(__name__).debug("Could not remove old log %s", old_log)


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: object = None,
    persist: bool = False,
) -> None:
    """Configure root logging for the tribunal CLI.

    Args:
        debug: Enable DEBUG level with detailed format
        level: Override log level (int or name like "INFO")
        stream: Output stream (default: stderr)
        persist: Also write a session log to .tribunal/logs/
    """
    resolved_level: int
    if level is not None:
        resolved_level = _parse_level(level)
    elif env_level := os.environ.get("TRIBUNAL_LOG_LEVEL"):
        resolved_level = _parse_level(env_level)
    elif os.environ.get("TRIBUNAL_DEBUG", "").lower() in ("true", "1", "yes"):
        resolved_level = logging.DEBUG
    elif debug:
        resolved_level = logging.DEBUG
    else:
        resolved_level = logging.WARNING

    console_format = _DEBUG_FORMAT if resolved_level <= logging.DEBUG else _DEFAULT_FORMAT

    root_logger = logging.getLogger()
    # File handler needs DEBUG records; the console handler filters on its own
    root_logger.setLevel(logging.DEBUG if persist else resolved_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(console_handler)

    if persist:
        try:
            log_dir = _get_log_directory()
            _cleanup_old_logs(log_dir)

            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            file_handler = logging.FileHandler(
                log_dir / f"session_{timestamp}.log", mode="w", encoding="utf-8"
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(_DEBUG_FORMAT))
            root_logger.addHandler(file_handler)
        except OSError as e:
            sys.stderr.write(f"Warning: Could not enable persistent logging: {e}\n")

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s, debug=%s, persist=%s",
        logging.getLevelName(resolved_level),
        debug,
        persist,
    )


def _parse_level(level: int | str) -> int:
    """Parse log level from int or string."""
    if isinstance(level, int):
        return level
    numeric = getattr(logging, level.upper(), None)
    if isinstance(numeric, int):
        return numeric
    try:
        return int(level)
    except ValueError:
        return logging.WARNING
