"""Core I/O utilities for Rulesets.

Single source of truth for how providers touch the filesystem:
- Atomic writes with fsync and advisory locks
- Plain text read/write operations
- Directory management utilities
"""
from __future__ import annotations

import fcntl
import logging
import os
import tempfile
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Callable, ContextManager, Optional, TextIO, Union

import yaml

PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


def ensure_parent_dir(path: PathLike) -> None:
    """Ensure the parent directory for ``path`` exists."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def ensure_directory(path: PathLike, create: bool = True) -> Path:
    """Ensure directory exists.

    Args:
        path: Directory path to check/create
        create: If True, create directory if missing; if False, raise if missing

    Returns:
        Path: The directory path (guaranteed to exist if create=True)

    Raises:
        FileNotFoundError: If create=False and directory doesn't exist
        NotADirectoryError: If path exists but is not a directory
    """
    path = Path(path)

    if path.exists():
        if not path.is_dir():
            raise NotADirectoryError(f"Path exists but is not a directory: {path}")
        return path

    if create:
        path.mkdir(parents=True, exist_ok=True)
        return path
    raise FileNotFoundError(f"Directory does not exist: {path}")


def atomic_write(
    path: PathLike,
    write_fn: Callable[[TextIO], None],
    *,
    lock_cm: Optional[ContextManager[Any]] = None,
    encoding: str = "utf-8",
) -> None:
    """Write to ``path`` atomically using a temp file + fsync + rename.

    - Parent directory is created if missing
    - Data is written to a temporary file in the same directory
    - File is fsync'd, unlocked, then atomically replaced
    - Any leftover temp file is cleaned up on failure

    Args:
        path: Target file path
        write_fn: Callable that writes content to the file object
        lock_cm: Optional context manager for file locking
        encoding: Text encoding (default: utf-8)
    """
    path = Path(path)
    ensure_parent_dir(path)

    lock_context = lock_cm or nullcontext()
    tmp_path: Optional[Path] = None
    try:
        with lock_context:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding=encoding,
                dir=str(path.parent),
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                write_fn(f)
                f.flush()
                os.fsync(f.fileno())
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

            os.replace(str(tmp_path), str(path))
    finally:
        if tmp_path is not None and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError as exc:
                logger.debug("Could not remove temp file %s: %s", tmp_path, exc)


def write_text(path: PathLike, content: str) -> None:
    """Atomically write UTF-8 text to ``path``."""
    atomic_write(Path(path), lambda f: f.write(content))


def write_text_plain(path: PathLike, content: str) -> None:
    """Create parent directories and write ``content`` directly (non-atomic)."""
    path = Path(path)
    ensure_parent_dir(path)
    path.write_text(content, encoding="utf-8")


def read_yaml(path: PathLike, default: Any = None, *, raise_on_error: bool = False) -> Any:
    """Read a YAML file with safe_load.

    Args:
        path: YAML file path
        default: Value returned when the file is missing or unreadable
        raise_on_error: Propagate parse errors instead of returning ``default``

    Returns:
        Parsed YAML content, or ``default``
    """
    path = Path(path)
    if not path.exists():
        if raise_on_error:
            raise FileNotFoundError(f"YAML file not found: {path}")
        return default
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError:
        if raise_on_error:
            raise
        logger.warning("Failed to parse YAML file %s", path)
        return default
    return default if data is None else data


__all__ = [
    "PathLike",
    "ensure_parent_dir",
    "ensure_directory",
    "atomic_write",
    "write_text",
    "write_text_plain",
    "read_yaml",
]
