"""Codex agent provider: every document merged into a root ``AGENTS.md``."""
from __future__ import annotations

from .aggregating import AggregatingProvider


class CodexAgentProvider(AggregatingProvider):
    provider_id = "codex-agent"
    default_filename = "AGENTS.md"
    section_prefix = "## Source:"
    separator = "\n\n"


__all__ = ["CodexAgentProvider"]
