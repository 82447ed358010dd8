"""Shared utilities (I/O, merging, text)."""
from __future__ import annotations

from .io import (
    atomic_write,
    ensure_directory,
    ensure_parent_dir,
    read_yaml,
    write_text,
    write_text_plain,
)
from .merge import deep_merge, merge_arrays
from .text import FRONTMATTER_PATTERN, ParsedDocument, parse_frontmatter, strip_frontmatter_block

__all__ = [
    "atomic_write",
    "ensure_directory",
    "ensure_parent_dir",
    "read_yaml",
    "write_text",
    "write_text_plain",
    "deep_merge",
    "merge_arrays",
    "FRONTMATTER_PATTERN",
    "ParsedDocument",
    "parse_frontmatter",
    "strip_frontmatter_block",
]
