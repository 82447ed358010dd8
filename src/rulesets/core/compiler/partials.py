"""Discover template partials on disk.

Sources are read in order, later ones overriding earlier ones:

1. Global partials: ``$RULESETS_HOME/partials`` (default ``~/.ruleset/partials``)
2. ``<project>/.config/ruleset/partials``
3. ``<project>/.ruleset/partials``
4. ``@``-prefixed files under ``<project>/.ruleset/rules``

The project root is the nearest ancestor of the source file that contains a
``.ruleset/`` directory.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from rulesets.core.types import RulesetDocument

logger = logging.getLogger(__name__)

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

GLOBAL_HOME_ENV = "RULESETS_HOME"

KNOWN_EXTENSIONS = (
    ".rule.md",
    ".ruleset.md",
    ".mdc",
    ".md",
    ".j2",
    ".jinja",
    ".hbs",
    ".handlebars",
    ".txt",
)


def global_directory() -> Path:
    override = os.environ.get(GLOBAL_HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".ruleset"


def find_project_root(source_path: Union[str, Path]) -> Optional[Path]:
    """Walk up from ``source_path`` to the first directory containing ``.ruleset/``."""
    current = Path(source_path).resolve().parent
    for candidate in (current, *current.parents):
        if (candidate / ".ruleset").is_dir():
            return candidate
    return None


def strip_known_extension(name: str) -> str:
    for ext in KNOWN_EXTENSIONS:
        if name.endswith(ext):
            return name[: -len(ext)]
    return name


def partial_name(relative: Path, *, strip_at_prefix: bool = False) -> str:
    parts = list(relative.parts)
    if strip_at_prefix and parts and parts[0].startswith("@"):
        parts[0] = parts[0][1:]
    return strip_known_extension("/".join(parts)).lstrip("/")


def collect_partials(
    base_dir: Path,
    target: Dict[str, str],
    *,
    require_at_prefix: bool = False,
    label: str = "",
    log: Optional[LoggerLike] = None,
) -> None:
    """Read every partial under ``base_dir`` into ``target``."""
    log = log or logger
    for root, dirs, files in os.walk(base_dir):
        dirs[:] = sorted(
            d for d in dirs if not d.startswith(".git") and not os.path.islink(os.path.join(root, d))
        )
        for filename in sorted(files):
            if filename.startswith(".git"):
                continue
            if require_at_prefix and not filename.startswith("@"):
                continue
            full = Path(root) / filename
            # Links are never followed, even when they point inside the tree.
            if full.is_symlink() or not full.is_file():
                continue
            name = partial_name(full.relative_to(base_dir), strip_at_prefix=require_at_prefix)
            if not name:
                continue
            try:
                target[name] = full.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                log.warning(
                    "Failed to load template partial",
                    extra={"path": str(full), "source": label, "error": str(exc)},
                )


def partial_sources(source_path: Optional[str], *, global_dir: Optional[Path] = None) -> List[Tuple[Path, bool, str]]:
    """Return ``(directory, require_at_prefix, label)`` in precedence order."""
    sources: List[Tuple[Path, bool, str]] = []
    global_partials = (global_dir or global_directory()) / "partials"
    if global_partials.is_dir():
        sources.append((global_partials, False, "global-partials"))

    if source_path:
        root = find_project_root(source_path)
        if root is not None:
            for directory, require_at, label in (
                (root / ".config" / "ruleset" / "partials", False, "project-config"),
                (root / ".ruleset" / "partials", False, "project-partials"),
                (root / ".ruleset" / "rules", True, "ruleset-rules"),
            ):
                if directory.is_dir():
                    sources.append((directory, require_at, label))
    return sources


def discover_partials(
    source_path: Optional[str],
    *,
    global_dir: Optional[Path] = None,
    log: Optional[LoggerLike] = None,
) -> Dict[str, str]:
    """Load all ambient partials visible from ``source_path``."""
    log = log or logger
    partials: Dict[str, str] = {}
    for directory, require_at, label in partial_sources(source_path, global_dir=global_dir):
        try:
            collect_partials(directory, partials, require_at_prefix=require_at, label=label, log=log)
        except OSError as exc:
            log.warning(
                "Failed to process partial directory",
                extra={"path": str(directory), "source": label, "error": str(exc)},
            )
    return partials


class PartialsCache:
    """Loads ambient partials for one document at most once.

    The orchestrator creates one cache per run, so several destinations that
    need templating share a single directory scan.
    """

    def __init__(
        self,
        document: RulesetDocument,
        *,
        global_dir: Optional[Path] = None,
        log: Optional[LoggerLike] = None,
    ) -> None:
        self._document = document
        self._global_dir = global_dir
        self._log = log
        self._partials: Optional[Dict[str, str]] = None
        self.loads = 0

    def get(self) -> Dict[str, str]:
        if self._partials is None:
            self.loads += 1
            self._partials = discover_partials(
                self._document.source.path,
                global_dir=self._global_dir,
                log=self._log,
            )
        return dict(self._partials)


__all__ = [
    "GLOBAL_HOME_ENV",
    "KNOWN_EXTENSIONS",
    "global_directory",
    "find_project_root",
    "strip_known_extension",
    "partial_name",
    "collect_partials",
    "partial_sources",
    "discover_partials",
    "PartialsCache",
]
