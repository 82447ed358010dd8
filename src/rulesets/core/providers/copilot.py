"""GitHub Copilot provider.

Resolves directory destinations with ``stat`` and writes a canonical
``AGENTS.md`` next to the primary instructions file.
"""
from __future__ import annotations

from typing import Any, Dict

from rulesets.core.capabilities import (
    DIAGNOSTICS_STRUCTURED,
    MARKDOWN_RENDER,
    OUTPUT_FILESYSTEM,
    TEMPLATE_CUSTOM_HELPERS,
    TEMPLATE_CUSTOM_PARTIALS,
    TEMPLATE_RENDER,
)

from .filesystem import FilesystemProvider, config_schema_with


class CopilotProvider(FilesystemProvider):
    provider_id = "copilot"
    stat_directories = True
    canonical_agents = True
    capabilities = (
        MARKDOWN_RENDER,
        TEMPLATE_RENDER,
        TEMPLATE_CUSTOM_HELPERS,
        TEMPLATE_CUSTOM_PARTIALS,
        OUTPUT_FILESYSTEM,
        DIAGNOSTICS_STRUCTURED,
    )

    def config_schema(self) -> Dict[str, Any]:
        return config_schema_with({"agentsOutputPath": {"type": "string"}})


__all__ = ["CopilotProvider"]
