"""Providers that merge every processed document into one artifact.

State lives on the provider instance, not the document: each ``compile``
upserts the caller's entry and rebuilds the whole output from every entry
seen so far, sorted by label. The rebuilt output replaces the target file
on each call, so the final file depends only on the set of documents.

The state lock is re-entrant and is held across ``compile`` and ``write``;
overlapping calls for the same document key are serialized, and the last
writer wins.
"""
from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from rulesets.core.capabilities import (
    DIAGNOSTICS_STRUCTURED,
    MARKDOWN_RENDER,
    OUTPUT_FILESYSTEM,
    TEMPLATE_CUSTOM_HELPERS,
    TEMPLATE_CUSTOM_PARTIALS,
    TEMPLATE_RENDER,
)
from rulesets.core.types import CompileArtifact, Result, RulesetDocument, result_ok

from .base import PreparationHook, Provider, ProviderCompileInput, TemplatePreparation, WriteContext
from .filesystem import config_schema_with
from .paths import resolve_configured_path
from .settings import is_truthy


@dataclass(frozen=True)
class AggregationEntry:
    label: str
    contents: str
    diagnostics: tuple = ()


@dataclass
class AggregationState:
    """Instance-lifetime map of document key to entry."""

    entries: Dict[str, AggregationEntry] = field(default_factory=dict)
    anonymous_count: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock)

    def document_key(self, document: RulesetDocument) -> str:
        source = document.source
        if source.path:
            return source.path
        if source.id:
            return source.id
        self.anonymous_count += 1
        return f"anonymous-{self.anonymous_count}"

    def upsert(self, key: str, entry: AggregationEntry) -> List[AggregationEntry]:
        """Store ``entry`` and return every entry in label order."""
        self.entries[key] = entry
        return [self.entries[k] for k in sorted(self.entries, key=lambda k: (self.entries[k].label, k))]

    def clear(self) -> None:
        with self.lock:
            self.entries.clear()
            self.anonymous_count = 0


def document_label(document: RulesetDocument, cwd: str) -> str:
    """Source path relative to ``cwd``, else the source id, else ``anonymous``."""
    path = document.source.path
    if path:
        relative = os.path.relpath(path, cwd) if os.path.isabs(path) else path
        relative = relative.replace("\\", "/")
        if relative and relative != ".":
            return relative
    if document.source.id:
        return document.source.id
    return "anonymous"


class AggregatingProvider(Provider):
    """Base for providers that emit one merged file for all documents.

    Subclasses set ``default_filename``, ``section_prefix`` and ``separator``.
    """

    default_filename: str = ""
    section_prefix: str = "# Source:"
    separator: str = "\n\n"
    atomic_writes = True
    capabilities = (
        MARKDOWN_RENDER,
        TEMPLATE_RENDER,
        TEMPLATE_CUSTOM_HELPERS,
        TEMPLATE_CUSTOM_PARTIALS,
        OUTPUT_FILESYSTEM,
        DIAGNOSTICS_STRUCTURED,
    )

    def __init__(self, *, preparation: Optional[PreparationHook] = None, **kwargs: Any) -> None:
        super().__init__(preparation=preparation or TemplatePreparation(self.provider_id), **kwargs)
        self.state = AggregationState()

    def config_schema(self) -> Dict[str, Any]:
        return config_schema_with({"enabled": {"type": ["boolean", "string"]}})

    def format_section(self, entry: AggregationEntry) -> str:
        return f"{self.section_prefix} {entry.label}\n\n{entry.contents}"

    def compile(self, input: ProviderCompileInput) -> Result:
        cwd = input.context.cwd
        fallback = os.path.join(cwd, self.default_filename)
        output_path = resolve_configured_path(input.config.get("outputPath"), fallback, cwd=cwd)

        rendered = input.rendered
        contents = rendered.contents if rendered is not None else input.document.body
        diagnostics = tuple(rendered.diagnostics) if rendered is not None else ()
        entry = AggregationEntry(
            label=document_label(input.document, cwd),
            contents=contents.rstrip(),
            diagnostics=diagnostics,
        )

        with self.state.lock:
            key = self.state.document_key(input.document)
            ordered = self.state.upsert(key, entry)
            merged = self.separator.join(self.format_section(e) for e in ordered) + "\n"
            merged_diagnostics = tuple(d for e in ordered for d in e.diagnostics)

        # An explicit disable keeps the file addressable but empty.
        emit = is_truthy(input.config.get("enabled")) is not False
        return result_ok(
            CompileArtifact(
                target=replace(input.target, output_path=output_path),
                contents=merged if emit else "",
                diagnostics=merged_diagnostics,
            )
        )

    def write(self, ctx: WriteContext) -> List[str]:
        with self.state.lock:
            return super().write(ctx)


__all__ = ["AggregationEntry", "AggregationState", "AggregatingProvider", "document_label"]
