"""Claude Code provider: a directory destination resolves to ``CLAUDE.md``."""
from __future__ import annotations

from rulesets.core.capabilities import (
    DIAGNOSTICS_STRUCTURED,
    MARKDOWN_RENDER,
    OUTPUT_FILESYSTEM,
    TEMPLATE_CUSTOM_HELPERS,
    TEMPLATE_CUSTOM_PARTIALS,
    TEMPLATE_RENDER,
)

from .filesystem import FilesystemProvider


class ClaudeCodeProvider(FilesystemProvider):
    provider_id = "claude-code"
    default_filename = "CLAUDE.md"
    capabilities = (
        MARKDOWN_RENDER,
        TEMPLATE_RENDER,
        TEMPLATE_CUSTOM_HELPERS,
        TEMPLATE_CUSTOM_PARTIALS,
        OUTPUT_FILESYSTEM,
        DIAGNOSTICS_STRUCTURED,
    )


__all__ = ["ClaudeCodeProvider"]
