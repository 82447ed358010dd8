"""Codex provider.

Besides the per-document file, Codex reads a shared ``AGENTS.md`` at the
destination root. The shared copy is on by default; disable it with
``enableSharedAgents: false`` or move it with ``agentsOutputPath``.
"""
from __future__ import annotations

import os
from typing import Any, Dict, List

from rulesets.core.capabilities import (
    DIAGNOSTICS_STRUCTURED,
    MARKDOWN_RENDER,
    OUTPUT_FILESYSTEM,
    TEMPLATE_CUSTOM_HELPERS,
    TEMPLATE_CUSTOM_PARTIALS,
    TEMPLATE_RENDER,
)
from rulesets.core.types import CompileArtifact

from .base import ProviderCompileInput
from .filesystem import FilesystemProvider, canonical_artifact, config_schema_with
from .paths import looks_like_directory
from .settings import is_truthy


class CodexProvider(FilesystemProvider):
    provider_id = "codex"
    capabilities = (
        MARKDOWN_RENDER,
        TEMPLATE_RENDER,
        TEMPLATE_CUSTOM_HELPERS,
        TEMPLATE_CUSTOM_PARTIALS,
        OUTPUT_FILESYSTEM,
        DIAGNOSTICS_STRUCTURED,
    )

    def config_schema(self) -> Dict[str, Any]:
        return config_schema_with(
            {
                "enableSharedAgents": {"type": ["boolean", "string"], "default": True},
                "agentsOutputPath": {"type": "string"},
            }
        )

    def extra_artifacts(
        self,
        primary: CompileArtifact,
        input: ProviderCompileInput,
        fmt: str,
    ) -> List[CompileArtifact]:
        if is_truthy(input.config.get("enableSharedAgents")) is False:
            return []
        base = input.target.output_path
        if not looks_like_directory(base):
            base = os.path.dirname(base)
        if not os.path.isabs(base):
            base = os.path.join(input.context.cwd, base)
        shared = canonical_artifact(
            primary,
            base_dir=base,
            configured=input.config.get("agentsOutputPath"),
            cwd=input.context.cwd,
        )
        return [shared] if shared is not None else []


__all__ = ["CodexProvider"]
