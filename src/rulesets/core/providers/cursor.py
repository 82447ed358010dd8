"""Cursor provider.

Writes one ``.md`` (or ``.mdc``-style) rule file per document. When the
destination config carries Cursor rule metadata (``globs``, ``alwaysApply``,
``description``) it is emitted as a YAML frontmatter header.
"""
from __future__ import annotations

from typing import Any, Dict

import yaml

from rulesets.core.capabilities import (
    DIAGNOSTICS_STRUCTURED,
    MARKDOWN_RENDER,
    OUTPUT_FILESYSTEM,
    TEMPLATE_CUSTOM_HELPERS,
    TEMPLATE_CUSTOM_PARTIALS,
    TEMPLATE_RENDER,
)

from .base import ProviderCompileInput
from .filesystem import FilesystemProvider, config_schema_with

CURSOR_RULE_KEYS = ("description", "globs", "alwaysApply")


class CursorProvider(FilesystemProvider):
    provider_id = "cursor"
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
                "priority": {"type": "string", "enum": ["low", "medium", "high"]},
                "globs": {"type": ["string", "array"], "items": {"type": "string"}},
                "alwaysApply": {"type": "boolean"},
                "description": {"type": "string"},
            }
        )

    def render_contents(self, contents: str, input: ProviderCompileInput, fmt: str) -> str:
        header = {k: input.config[k] for k in CURSOR_RULE_KEYS if input.config.get(k) is not None}
        if not header:
            return contents
        dumped = yaml.safe_dump(header, default_flow_style=False, allow_unicode=True, sort_keys=False)
        return f"---\n{dumped}---\n\n{contents}"


__all__ = ["CursorProvider"]
