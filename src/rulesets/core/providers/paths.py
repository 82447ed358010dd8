"""Output path resolution shared by filesystem providers.

Every provider turns ``base path + optional override + fallback filename``
into one absolute, normalized path. Providers differ in two ways only: the
fallback filename they derive and whether an existing directory on disk is
detected with ``stat`` in addition to the lexical rule. Both knobs are
parameters here; each provider keeps its own setting.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from rulesets.core.utils.io import PathLike

RULE_FILE_SUFFIXES = (".rule.md", ".ruleset.md", ".mix.md", ".mdc", ".md")
DEFAULT_FALLBACK_STEM = "rules"


def format_extension(fmt: Optional[str]) -> str:
    return ".xml" if (fmt or "").lower() == "xml" else ".md"


def looks_like_directory(candidate: str) -> bool:
    """Lexical check: trailing separator, or no extension on the last segment."""
    if candidate.endswith("/") or candidate.endswith(os.sep):
        return True
    return os.path.splitext(candidate)[1] == ""


def is_directory_on_disk(candidate: PathLike) -> bool:
    try:
        return Path(candidate).is_dir()
    except OSError:
        return False


def strip_rule_suffix(name: str) -> str:
    lowered = name.lower()
    for suffix in RULE_FILE_SUFFIXES:
        if lowered.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name


def fallback_filename(
    source_path: Optional[str],
    fmt: Optional[str] = "markdown",
    *,
    default_stem: str = DEFAULT_FALLBACK_STEM,
) -> str:
    """Derive the filename used when the destination resolves to a directory.

    Example:
        >>> fallback_filename("/repo/.ruleset/rules/style.rule.md")
        'style.md'
        >>> fallback_filename(None, "xml")
        'rules.xml'
    """
    stem = default_stem
    if source_path:
        name = os.path.basename(source_path.rstrip("/\\"))
        if name:
            stem = strip_rule_suffix(name)
            if stem == name:
                stem = os.path.splitext(name)[0] or name
    return f"{stem}{format_extension(fmt)}"


def _absolute(path: str, cwd: Optional[PathLike] = None) -> str:
    if os.path.isabs(path):
        return os.path.normpath(path)
    return os.path.normpath(os.path.join(str(cwd) if cwd else os.getcwd(), path))


def resolve_output_path(
    base_path: PathLike,
    override: Any = None,
    *,
    source_path: Optional[str] = None,
    fmt: Optional[str] = "markdown",
    stat_directories: bool = False,
    filename: Optional[str] = None,
    cwd: Optional[PathLike] = None,
) -> str:
    """Resolve the final artifact path.

    Args:
        base_path: Destination base (directory-like or file-like)
        override: Configured ``outputPath``; non-string or blank values are ignored
        source_path: Source document path used for the fallback filename
        fmt: ``"markdown"`` or ``"xml"``
        stat_directories: Also treat existing directories on disk as directory-like
        filename: Explicit fallback filename, bypassing derivation from ``source_path``
        cwd: Anchor for relative base paths (defaults to the process cwd)

    Returns:
        Absolute, normalized path
    """
    base = str(base_path)
    base_abs = _absolute(base, cwd)
    candidate = base

    if isinstance(override, str) and override.strip():
        raw = override.strip()
        if os.path.isabs(raw):
            candidate = raw
        else:
            anchor = base_abs if looks_like_directory(base) else os.path.dirname(base_abs)
            candidate = os.path.join(anchor, raw)
            if raw.endswith(("/", os.sep)) and not candidate.endswith(("/", os.sep)):
                candidate += "/"

    directory_like = looks_like_directory(candidate)
    if not directory_like and stat_directories:
        directory_like = is_directory_on_disk(_absolute(candidate, cwd))

    if directory_like:
        name = filename or fallback_filename(source_path, fmt)
        return _absolute(os.path.join(candidate, name), cwd)
    return _absolute(candidate, cwd)


def resolve_configured_path(
    configured: Any,
    fallback_path: PathLike,
    *,
    cwd: PathLike,
    fmt: Optional[str] = "markdown",
) -> str:
    """Resolve an override relative to ``cwd`` instead of the destination base.

    A directory-like override keeps the fallback file's name.
    """
    fallback = str(fallback_path)
    if not isinstance(configured, str) or not configured.strip():
        return os.path.normpath(fallback)
    raw = configured.strip()
    resolved = _absolute(raw, cwd)
    if not looks_like_directory(raw):
        return resolved
    stem, ext = os.path.splitext(os.path.basename(fallback))
    if (fmt or "").lower() == "xml":
        ext = ".xml"
    return os.path.normpath(os.path.join(resolved, f"{stem}{ext or '.md'}"))


def resolve_symlink(path: PathLike) -> str:
    """Follow a symlink at ``path`` to its real target; other paths pass through."""
    p = Path(path)
    if p.is_symlink():
        return os.path.realpath(str(p))
    return str(p)


__all__ = [
    "RULE_FILE_SUFFIXES",
    "DEFAULT_FALLBACK_STEM",
    "format_extension",
    "looks_like_directory",
    "is_directory_on_disk",
    "strip_rule_suffix",
    "fallback_filename",
    "resolve_output_path",
    "resolve_configured_path",
    "resolve_symlink",
]
