"""Cline provider: every document merged into ``.clinerules``."""
from __future__ import annotations

from .aggregating import AggregatingProvider


class ClineProvider(AggregatingProvider):
    provider_id = "cline"
    default_filename = ".clinerules"
    section_prefix = "# Source:"
    separator = "\n\n---\n\n"


__all__ = ["ClineProvider"]
