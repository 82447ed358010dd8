"""YAML frontmatter helpers.

Rule documents start with an optional ``---`` delimited YAML block:

    ---
    rule:
      template: true
    cursor:
      enabled: true
    ---

    # Body
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict

import yaml

FRONTMATTER_PATTERN = re.compile(
    r"^---\s*\n(.*?)\n---\s*\n?",
    re.DOTALL | re.MULTILINE,
)
_FRONTMATTER_BLOCK_RE = re.compile(r"^---\s*\n.*?\n---\s*\n?", re.DOTALL)


@dataclass
class ParsedDocument:
    """Result of splitting a document into frontmatter and body.

    Attributes:
        frontmatter: Parsed YAML frontmatter as a dictionary
        content: The markdown content after the frontmatter
        raw_frontmatter: The raw YAML string
    """

    frontmatter: Dict[str, Any]
    content: str
    raw_frontmatter: str


def parse_frontmatter(content: str) -> ParsedDocument:
    """Parse YAML frontmatter from markdown content.

    Raises:
        ValueError: If the frontmatter YAML is invalid or not a mapping
    """
    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return ParsedDocument(frontmatter={}, content=content, raw_frontmatter="")

    raw_yaml = match.group(1)
    try:
        parsed = yaml.safe_load(raw_yaml)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in frontmatter: {e}") from e
    if parsed is None:
        parsed = {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Frontmatter must be a YAML mapping, got {type(parsed).__name__}")

    return ParsedDocument(
        frontmatter=parsed,
        content=content[match.end():],
        raw_frontmatter=raw_yaml,
    )


def strip_frontmatter_block(text: str) -> str:
    """Remove a leading YAML frontmatter block without parsing it."""
    return _FRONTMATTER_BLOCK_RE.sub("", text, count=1)


__all__ = ["FRONTMATTER_PATTERN", "ParsedDocument", "parse_frontmatter", "strip_frontmatter_block"]
