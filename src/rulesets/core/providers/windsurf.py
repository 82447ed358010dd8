"""Windsurf provider.

Supports ``format: markdown|xml``. Unlike most providers, an existing
directory on disk is detected with ``stat`` when resolving the output path.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping

from rulesets.core.types import CompileTarget

from .base import ProviderCompileInput
from .filesystem import FilesystemProvider, config_schema_with, normalize_format


class WindsurfProvider(FilesystemProvider):
    provider_id = "windsurf"
    stat_directories = True

    def config_schema(self) -> Dict[str, Any]:
        return config_schema_with(
            {"format": {"type": "string", "enum": ["markdown", "xml"], "default": "markdown"}}
        )

    def resolve_format(self, target: CompileTarget, config: Mapping[str, Any]) -> str:
        return normalize_format(config.get("format")) or super().resolve_format(target, config)

    def render_contents(self, contents: str, input: ProviderCompileInput, fmt: str) -> str:
        if fmt != "xml":
            return contents
        return f"<rules>\n{contents.rstrip()}\n</rules>\n"


__all__ = ["WindsurfProvider"]
