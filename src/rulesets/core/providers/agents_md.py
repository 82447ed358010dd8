"""AGENTS.md provider."""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict

from rulesets.core.capabilities import (
    DIAGNOSTICS_STRUCTURED,
    MARKDOWN_RENDER,
    OUTPUT_FILESYSTEM,
    TEMPLATE_CUSTOM_HELPERS,
    TEMPLATE_CUSTOM_PARTIALS,
    TEMPLATE_RENDER,
)
from rulesets.core.types import CompileArtifact, Diagnostic, Result, result_ok

from .base import ProviderCompileInput
from .filesystem import CANONICAL_AGENTS_FILENAME, FilesystemProvider, config_schema_with
from .paths import resolve_symlink
from .settings import is_truthy


class AgentsMdProvider(FilesystemProvider):
    """Writes ``AGENTS.md``; follows an existing symlink at the target unless
    ``detectSymlinks`` is false."""

    provider_id = "agents-md"
    default_filename = CANONICAL_AGENTS_FILENAME
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
                "detectSymlinks": {"type": ["boolean", "string"]},
                "useComposer": {"type": ["boolean", "string"]},
            }
        )

    def compile(self, input: ProviderCompileInput) -> Result:
        result = super().compile(input)
        artifact: CompileArtifact = result.value

        path = artifact.target.output_path
        if is_truthy(input.config.get("detectSymlinks")) is not False:
            path = resolve_symlink(path)

        diagnostics = list(artifact.diagnostics)
        if is_truthy(input.config.get("useComposer")) is True:
            diagnostics.append(
                Diagnostic(
                    level="warning",
                    message="agents-md.useComposer is not supported; emitting single-source content instead.",
                    hint="Re-run without useComposer.",
                    tags=("provider", "agents-md", "useComposer"),
                )
            )

        return result_ok(
            replace(
                artifact,
                target=replace(artifact.target, output_path=path),
                diagnostics=tuple(diagnostics),
            )
        )


__all__ = ["AgentsMdProvider"]
