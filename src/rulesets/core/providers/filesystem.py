"""Shared base for providers that write one file per document.

Subclasses tune a handful of class attributes (directory detection, default
filename, canonical ``AGENTS.md`` companion) and may override
:meth:`FilesystemProvider.render_contents` or
:meth:`FilesystemProvider.extra_artifacts`.
"""
from __future__ import annotations

import os
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional

from rulesets.core.types import CompileArtifact, CompileTarget, Result, result_ok

from .base import PreparationHook, Provider, ProviderCompileInput, TemplatePreparation, has_capability
from .paths import resolve_configured_path, resolve_output_path

CANONICAL_AGENTS_FILENAME = "AGENTS.md"


def normalize_format(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered in ("markdown", "xml"):
        return lowered
    return None


class FilesystemProvider(Provider):
    """One artifact per document, resolved with the shared path algorithm.

    Attributes:
        stat_directories: Treat an existing directory on disk as directory-like
        default_filename: Filename used for a directory-like destination instead
            of one derived from the source path
        output_key: Config key holding the path override
        canonical_agents: Also emit a canonical ``AGENTS.md`` next to the primary file
    """

    stat_directories: bool = False
    default_filename: Optional[str] = None
    output_key: str = "outputPath"
    canonical_agents: bool = False

    def __init__(self, *, preparation: Optional[PreparationHook] = None, **kwargs: Any) -> None:
        super().__init__(preparation=preparation or TemplatePreparation(self.provider_id), **kwargs)

    def resolve_format(self, target: CompileTarget, config: Mapping[str, Any]) -> str:
        return "xml" if has_capability(target, "output:sections") else "markdown"

    def resolve_path(self, input: ProviderCompileInput, fmt: str) -> str:
        return resolve_output_path(
            input.target.output_path,
            input.config.get(self.output_key),
            source_path=input.document.source.path,
            fmt=fmt,
            stat_directories=self.stat_directories,
            filename=self.default_filename,
            cwd=input.context.cwd,
        )

    def render_contents(self, contents: str, input: ProviderCompileInput, fmt: str) -> str:
        return contents

    def extra_artifacts(
        self,
        primary: CompileArtifact,
        input: ProviderCompileInput,
        fmt: str,
    ) -> List[CompileArtifact]:
        if not self.canonical_agents:
            return []
        canonical = canonical_artifact(
            primary,
            base_dir=os.path.dirname(primary.target.output_path),
            configured=input.config.get("agentsOutputPath"),
            cwd=input.context.cwd,
        )
        return [canonical] if canonical is not None else []

    def compile(self, input: ProviderCompileInput) -> Result:
        fmt = self.resolve_format(input.target, input.config)
        output_path = self.resolve_path(input, fmt)
        rendered = input.rendered
        contents = rendered.contents if rendered is not None else input.document.body
        diagnostics = rendered.diagnostics if rendered is not None else tuple(input.document.diagnostics)

        primary = CompileArtifact(
            target=replace(input.target, output_path=output_path),
            contents=self.render_contents(contents, input, fmt),
            diagnostics=tuple(diagnostics),
        )
        artifacts = [primary, *self.extra_artifacts(primary, input, fmt)]
        return result_ok(artifacts[0] if len(artifacts) == 1 else artifacts)


def canonical_artifact(
    primary: CompileArtifact,
    *,
    base_dir: str,
    configured: Any = None,
    cwd: str,
    filename: str = CANONICAL_AGENTS_FILENAME,
) -> Optional[CompileArtifact]:
    """Copy ``primary`` to ``<base_dir>/AGENTS.md`` (or a configured path).

    Returns ``None`` when that path is the primary artifact's own path.
    """
    fallback = os.path.normpath(os.path.join(base_dir, filename))
    path = resolve_configured_path(configured, fallback, cwd=cwd)
    if os.path.normpath(path) == os.path.normpath(primary.target.output_path):
        return None
    return replace(primary, target=replace(primary.target, output_path=path))


def config_schema_with(extra: Dict[str, Any]) -> Dict[str, Any]:
    properties: Dict[str, Any] = {
        "enabled": {"type": "boolean"},
        "outputPath": {"type": "string"},
    }
    properties.update(extra)
    return {"type": "object", "properties": properties, "additionalProperties": True}


__all__ = [
    "CANONICAL_AGENTS_FILENAME",
    "normalize_format",
    "FilesystemProvider",
    "canonical_artifact",
    "config_schema_with",
]
