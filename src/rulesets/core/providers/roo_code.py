"""Roo Code provider.

Rules live under ``<cwd>/.roo/rules/`` (common) and
``<cwd>/.roo/rules-<mode>/`` (mode-specific). With no ``mode``/``modes``
configured only the common file is written; with modes, the common file is
written only when ``includeCommon`` is true.
"""
from __future__ import annotations

import os
import re
from dataclasses import replace
from typing import Any, Dict, List, Mapping

from rulesets.core.capabilities import (
    DIAGNOSTICS_STRUCTURED,
    MARKDOWN_RENDER,
    OUTPUT_FILESYSTEM,
    TEMPLATE_CUSTOM_HELPERS,
    TEMPLATE_CUSTOM_PARTIALS,
    TEMPLATE_RENDER,
)
from rulesets.core.types import CompileArtifact, Result, result_ok

from .base import ProviderCompileInput
from .filesystem import FilesystemProvider, config_schema_with
from .paths import fallback_filename, resolve_configured_path
from .settings import is_truthy

ROO_DIR = ".roo"
_MODE_CLEAN = re.compile(r"[^a-z0-9-]+")


def normalize_mode(value: str) -> str:
    return _MODE_CLEAN.sub("-", value.strip().lower())


def collect_modes(config: Mapping[str, Any]) -> List[str]:
    candidates: List[Any] = []
    if config.get("mode") is not None:
        candidates.append(config["mode"])
    modes = config.get("modes")
    if isinstance(modes, list):
        candidates.extend(modes)
    elif modes is not None:
        candidates.append(modes)

    result: List[str] = []
    for candidate in candidates:
        if not isinstance(candidate, str) or not candidate.strip():
            continue
        mode = normalize_mode(candidate)
        if mode and mode not in result:
            result.append(mode)
    return result


class RooCodeProvider(FilesystemProvider):
    provider_id = "roo-code"
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
                "mode": {"type": "string"},
                "modes": {"type": ["string", "array"], "items": {"type": "string"}},
                "includeCommon": {"type": ["boolean", "string"]},
            }
        )

    def compile(self, input: ProviderCompileInput) -> Result:
        fmt = self.resolve_format(input.target, input.config)
        filename = fallback_filename(input.document.source.path, fmt)
        cwd = input.context.cwd
        modes = collect_modes(input.config)
        include_common = not modes or is_truthy(input.config.get("includeCommon")) is True

        paths: List[str] = []
        if include_common:
            common = os.path.join(cwd, ROO_DIR, "rules", filename)
            paths.append(resolve_configured_path(input.config.get("outputPath"), common, cwd=cwd, fmt=fmt))
        for mode in modes:
            path = os.path.normpath(os.path.join(cwd, ROO_DIR, f"rules-{mode}", filename))
            if path not in paths:
                paths.append(path)

        rendered = input.rendered
        contents = rendered.contents if rendered is not None else input.document.body
        diagnostics = tuple(rendered.diagnostics) if rendered is not None else ()
        artifacts = [
            CompileArtifact(
                target=replace(input.target, output_path=path),
                contents=contents,
                diagnostics=diagnostics,
            )
            for path in paths
        ]
        return result_ok(artifacts[0] if len(artifacts) == 1 else artifacts)


__all__ = ["RooCodeProvider", "collect_modes", "normalize_mode"]
