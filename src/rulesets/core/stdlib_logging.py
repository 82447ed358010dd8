"""Process-wide logging setup.

Library modules only call ``logging.getLogger(__name__)``. Hosts that embed
the compiler (a CLI, an editor extension) call :func:`configure_stdlib_logging`
once to route records to a file, keeping stdout free for their own output.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

from rulesets.core.utils.io import ensure_directory

DEFAULT_LEVEL = "info"

_LEVEL_ALIASES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_CONFIGURED_LOG_PATH: str | None = None
_FILE_HANDLER: logging.Handler | None = None


def level_from_name(name: str) -> int:
    return _LEVEL_ALIASES.get(str(name).strip().lower(), logging.INFO)


def resolve_log_level(project_config: Optional[Mapping[str, Any]]) -> str:
    """Read ``log.level`` from project config (``debug|info|warn|error``)."""
    block = (project_config or {}).get("log")
    if isinstance(block, Mapping):
        level = block.get("level")
        if isinstance(level, str) and level.strip().lower() in _LEVEL_ALIASES:
            return level.strip().lower()
    return DEFAULT_LEVEL


def configure_stdlib_logging(*, log_path: Path, level: str = DEFAULT_LEVEL) -> None:
    """Send root logging to ``log_path`` and drop stdout/stderr stream handlers.

    Idempotent per process: a second call for the same file is a no-op, a call
    for a different file replaces the handler installed earlier.
    """
    global _CONFIGURED_LOG_PATH, _FILE_HANDLER

    resolved = str(Path(log_path).resolve())
    if _CONFIGURED_LOG_PATH == resolved and _FILE_HANDLER is not None:
        return

    ensure_directory(Path(resolved).parent)

    root = logging.getLogger()
    root.setLevel(level_from_name(level))

    # FileHandler is also a StreamHandler; only console streams are removed.
    for handler in list(root.handlers):
        if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) in (
            sys.stdout,
            sys.stderr,
        ):
            root.removeHandler(handler)
            handler.close()

    if _FILE_HANDLER is not None:
        root.removeHandler(_FILE_HANDLER)
        _FILE_HANDLER.close()
        _FILE_HANDLER = None

    handler = logging.FileHandler(resolved, encoding="utf-8")
    handler.setLevel(level_from_name(level))
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)

    _FILE_HANDLER = handler
    _CONFIGURED_LOG_PATH = resolved


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: clear configured handlers."""
    global _CONFIGURED_LOG_PATH, _FILE_HANDLER
    if _FILE_HANDLER is not None:
        logging.getLogger().removeHandler(_FILE_HANDLER)
        _FILE_HANDLER.close()
    _CONFIGURED_LOG_PATH = None
    _FILE_HANDLER = None


__all__ = [
    "DEFAULT_LEVEL",
    "level_from_name",
    "resolve_log_level",
    "configure_stdlib_logging",
    "reset_stdlib_logging_for_tests",
]
