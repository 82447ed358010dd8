"""Turn a parsed document into a :class:`CompiledDoc` for one destination."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from rulesets.core.providers.settings import TemplateOptions, resolve_provider_settings
from rulesets.core.types import (
    CompileContext,
    CompiledDoc,
    CompiledOutput,
    RulesetAst,
    RulesetDocument,
)

from .templating import TemplateRenderer, build_template_context

logger = logging.getLogger(__name__)

TEMPLATE_COMPILERS = frozenset({"jinja", "jinja2", "handlebars"})

_default_renderer = TemplateRenderer()

_STRUCTURED_KEYS = ("title", "description", "version", "created", "updated", "labels")


def _mapping(value: Any) -> Optional[Mapping[str, Any]]:
    return value if isinstance(value, Mapping) else None


def prefers_templating(
    frontmatter: Optional[Mapping[str, Any]],
    project_config: Optional[Mapping[str, Any]],
    force: Optional[bool] = None,
) -> bool:
    """Decide whether the body is rendered as a template.

    First decisive signal wins: a forced flag, ``rule.template`` in
    frontmatter, ``rule.template`` in project config, then a legacy
    ``rulesets.compiler`` / project ``compiler`` naming a template engine.
    """
    if force:
        return True

    frontmatter = frontmatter or {}
    project_config = project_config or {}

    rule = _mapping(frontmatter.get("rule"))
    if rule is not None and isinstance(rule.get("template"), bool):
        return rule["template"]

    project_rule = _mapping(project_config.get("rule"))
    if project_rule is not None and isinstance(project_rule.get("template"), bool):
        return project_rule["template"]

    legacy = _mapping(frontmatter.get("rulesets"))
    if legacy is not None and legacy.get("compiler") in TEMPLATE_COMPILERS:
        return True

    return project_config.get("compiler") in TEMPLATE_COMPILERS


def build_output_metadata(frontmatter: Optional[Mapping[str, Any]], destination_id: str) -> Dict[str, Any]:
    """Frontmatter pass-through, structured fields, then destination config on top."""
    frontmatter = dict(frontmatter or {})
    metadata: Dict[str, Any] = dict(frontmatter)

    structured: Dict[str, Any] = {key: frontmatter.get(key) for key in _STRUCTURED_KEYS}
    rule = _mapping(frontmatter.get("rule"))
    if rule is not None:
        version = rule.get("version")
        if isinstance(version, str) and version.strip():
            structured["version"] = version
        globs = rule.get("globs")
        if isinstance(globs, list):
            structured["rule.globs"] = [g.strip() for g in globs if isinstance(g, str) and g.strip()]

    metadata.update({k: v for k, v in structured.items() if v is not None})
    metadata.update(resolve_provider_settings(frontmatter, destination_id).config)
    return metadata


def build_compile_context(
    destination_id: str,
    project_config: Optional[Mapping[str, Any]],
    frontmatter: Optional[Mapping[str, Any]],
) -> CompileContext:
    config: Dict[str, Any] = dict(project_config or {})
    config.update(resolve_provider_settings(frontmatter, destination_id).config)
    return CompileContext(destination_id=destination_id, config=config)


def compile_document(
    document: RulesetDocument,
    destination_id: str,
    project_config: Optional[Mapping[str, Any]] = None,
    *,
    template: Optional[TemplateOptions] = None,
    ambient_partials: Optional[Callable[[], Dict[str, str]]] = None,
    destinations: Iterable[str] = (),
    provider_name: Optional[str] = None,
    renderer: Optional[TemplateRenderer] = None,
    log: Optional[logging.Logger | logging.LoggerAdapter] = None,
) -> CompiledDoc:
    """Compile ``document`` for ``destination_id``.

    Args:
        document: Parsed document
        destination_id: Destination being compiled for
        project_config: Effective project configuration
        template: Template overrides from the provider's preparation step
        ambient_partials: Called only when templating is used; returns
            partials discovered on disk
        destinations: Ids of all registered destinations (template context)
        provider_name: Display name for the template context
        renderer: Renderer instance (defaults to a shared module renderer)
        log: Logger for debug output

    Returns:
        The compiled document; an empty source yields empty output

    Raises:
        TemplateRenderError: If templating is used and rendering fails
    """
    log = log or logger
    source = document.source
    frontmatter = dict(document.frontmatter or {})
    context = build_compile_context(destination_id, project_config, frontmatter)

    if not source.contents.strip():
        return CompiledDoc(
            source=source,
            ast=RulesetAst(),
            output=CompiledOutput(content="", metadata={}),
            context=context,
            frontmatter=frontmatter,
        )

    body = document.body.strip()
    metadata = build_output_metadata(frontmatter, destination_id)

    if prefers_templating(frontmatter, project_config, template.force if template else None):
        partials: Dict[str, str] = dict(ambient_partials() if ambient_partials else {})
        if template is not None:
            partials.update(template.partials)
        variables = build_template_context(
            document,
            destination_id,
            project_config=project_config,
            destinations=destinations,
            metadata=metadata,
            provider_name=provider_name,
        )
        body = (renderer or _default_renderer).render(
            body,
            variables,
            source_path=source.path,
            destination_id=destination_id,
            helpers=template.helpers if template else None,
            partials=partials,
            strict=template.strict if template else None,
            no_escape=template.no_escape if template else None,
        )
        log.debug("Rendered template for %s", destination_id, extra={"file": source.path})

    log.debug(
        "Compiled %s for %s",
        source.path or "inline document",
        destination_id,
        extra={"destination": destination_id, "file": source.path},
    )
    return CompiledDoc(
        source=source,
        ast=document.ast,
        output=CompiledOutput(content=body, metadata=metadata),
        context=context,
        frontmatter=frontmatter,
    )


__all__ = [
    "TEMPLATE_COMPILERS",
    "prefers_templating",
    "build_output_metadata",
    "build_compile_context",
    "compile_document",
]
