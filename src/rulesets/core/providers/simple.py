"""Generic markdown providers that also emit a canonical ``AGENTS.md``."""
from __future__ import annotations

from typing import Any, Dict

from .filesystem import FilesystemProvider, config_schema_with


class SimpleMarkdownProvider(FilesystemProvider):
    canonical_agents = True

    def config_schema(self) -> Dict[str, Any]:
        return config_schema_with({"agentsOutputPath": {"type": "string"}})


class AmpProvider(SimpleMarkdownProvider):
    provider_id = "amp"


class GeminiProvider(SimpleMarkdownProvider):
    provider_id = "gemini"


class OpenCodeProvider(SimpleMarkdownProvider):
    provider_id = "opencode"


class ZedProvider(SimpleMarkdownProvider):
    provider_id = "zed"


__all__ = ["SimpleMarkdownProvider", "AmpProvider", "GeminiProvider", "OpenCodeProvider", "ZedProvider"]
