"""Compile one document for many destinations.

The orchestrator is the entry point callers use after parsing a document:

    registry = create_default_registry()
    results = compile_for_destinations(document, "auto", project_config, registry=registry)

Destinations are processed sequentially, in selection order. A failure in
one destination is recorded on its :class:`DestinationResult` and never
stops the others. Only when every requested destination fails is a single
:class:`CompilationFailedError` raised.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from rulesets.core.capabilities import (
    MARKDOWN_RENDER,
    TEMPLATE_CUSTOM_HELPERS,
    TEMPLATE_CUSTOM_PARTIALS,
    TEMPLATE_RENDER,
)
from rulesets.core.compiler import PartialsCache, compile_document, prefers_templating
from rulesets.core.exceptions import CompilationFailedError, ProviderCompileError, ProviderNotFoundError
from rulesets.core.providers.base import LoggerLike, Provider, WriteContext, PROVIDER_SDK_VERSION
from rulesets.core.providers.registry import ProviderRegistry
from rulesets.core.providers.settings import CompilationOptions, TemplateOptions, merge_provider_config
from rulesets.core.schemas.validation import schema_errors
from rulesets.core.selection import select_destinations
from rulesets.core.types import Diagnostic, DestinationResult, RulesetDocument, RuntimeContext

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = os.path.join(".ruleset", "dist")

Destinations = Union[str, Sequence[str]]


@dataclass(frozen=True)
class ResultSummary:
    total: int
    succeeded: int
    failed: int

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0

    @property
    def partial(self) -> bool:
        return self.succeeded > 0 and self.failed > 0


def summarize_results(results: Sequence[DestinationResult]) -> ResultSummary:
    succeeded = sum(1 for r in results if r.success)
    return ResultSummary(total=len(results), succeeded=succeeded, failed=len(results) - succeeded)


def merge_template_options(
    base: Optional[TemplateOptions],
    override: Optional[TemplateOptions],
) -> Optional[TemplateOptions]:
    """Layer provider-prepared template options over caller-supplied ones."""
    if base is None:
        return override
    if override is None:
        return base
    helpers = dict(base.helpers)
    helpers.update(override.helpers)
    partials = dict(base.partials)
    partials.update(override.partials)
    return TemplateOptions(
        force=True if (base.force or override.force) else None,
        helpers=helpers,
        partials=partials,
        strict=override.strict if override.strict is not None else base.strict,
        no_escape=override.no_escape if override.no_escape is not None else base.no_escape,
    )


def required_capabilities(
    destination_config: Mapping[str, Any],
    *,
    templated: bool,
    template: Optional[TemplateOptions] = None,
) -> tuple:
    """Capabilities the target needs: configured ones plus the render mode.

    Requested template helpers or partials add their capabilities when the
    body is rendered as a template; ambient partials found on disk do not.
    """
    required: List[str] = []
    configured = destination_config.get("capabilities")
    if isinstance(configured, (list, tuple)):
        required.extend(c for c in configured if isinstance(c, str) and c not in required)
    render = TEMPLATE_RENDER.id if templated else MARKDOWN_RENDER.id
    if render not in required:
        required.append(render)
    if templated and template is not None:
        if template.helpers and TEMPLATE_CUSTOM_HELPERS.id not in required:
            required.append(TEMPLATE_CUSTOM_HELPERS.id)
        if template.partials and TEMPLATE_CUSTOM_PARTIALS.id not in required:
            required.append(TEMPLATE_CUSTOM_PARTIALS.id)
    return tuple(required)


def _resolve_output_dir(output_dir: Optional[str], project_config: Mapping[str, Any]) -> str:
    if output_dir:
        return output_dir
    configured = project_config.get("output")
    if isinstance(configured, str) and configured.strip():
        return configured
    return DEFAULT_OUTPUT_DIR


def _requested_destinations(
    document: RulesetDocument,
    destinations: Destinations,
    registry: ProviderRegistry,
    project_config: Mapping[str, Any],
) -> List[str]:
    if isinstance(destinations, str):
        if destinations == "auto":
            return select_destinations(document, registry, project_config)
        return [destinations]
    ordered: List[str] = []
    for destination_id in destinations:
        if destination_id not in ordered:
            ordered.append(destination_id)
    return ordered


def _config_diagnostics(provider: Provider, config: Mapping[str, Any]) -> List[Diagnostic]:
    return [
        Diagnostic(
            level="warning",
            message=f"Invalid {provider.name} configuration: {message}",
            tags=("provider", provider.name, "config"),
        )
        for message in schema_errors(dict(config), provider.config_schema())
    ]


def compile_for_destinations(
    document: RulesetDocument,
    destinations: Destinations = "auto",
    project_config: Optional[Mapping[str, Any]] = None,
    *,
    registry: ProviderRegistry,
    cwd: Optional[str] = None,
    output_dir: Optional[str] = None,
    logger: Optional[LoggerLike] = None,
    template: Optional[TemplateOptions] = None,
    partials: Optional[Mapping[str, str]] = None,
    project_config_path: Optional[str] = None,
) -> List[DestinationResult]:
    """Compile and write ``document`` for each requested destination.

    Args:
        document: Parsed (and already linted) document
        destinations: ``"auto"`` to derive the set from frontmatter, or explicit ids
        project_config: Project configuration mapping
        registry: Providers available for this run
        cwd: Working directory (default: process cwd)
        output_dir: Base output directory, relative to ``cwd``
        logger: Logger passed to providers (default: module logger)
        template: Caller-level template options
        partials: Explicit partial set; disables ambient partial discovery
        project_config_path: Path the project config was loaded from

    Returns:
        One result per requested destination, in request order

    Raises:
        CompilationFailedError: If every requested destination failed
    """
    log = logger or logging.getLogger(__name__)
    cwd = os.path.abspath(cwd or os.getcwd())
    base_config: Dict[str, Any] = dict(project_config or {})
    base_dir = os.path.join(cwd, _resolve_output_dir(output_dir, base_config))
    runtime = RuntimeContext(version=PROVIDER_SDK_VERSION, cwd=cwd)

    requested = _requested_destinations(document, destinations, registry, base_config)
    # One scan per run, shared by every destination of this document.
    partials_cache = PartialsCache(document, log=log)
    ambient = (lambda: dict(partials)) if partials is not None else partials_cache.get

    results: List[DestinationResult] = []
    for destination_id in requested:
        provider = registry.get(destination_id)
        if provider is None:
            error = ProviderNotFoundError(destination_id)
            log.error("Destination provider not registered: %s", destination_id)
            results.append(DestinationResult(destination_id=destination_id, success=False, error=error))
            continue

        try:
            results.append(
                _compile_destination(
                    document,
                    provider,
                    registry=registry,
                    project_config=base_config,
                    project_config_path=project_config_path,
                    base_dir=base_dir,
                    runtime=runtime,
                    log=log,
                    template=template,
                    ambient=ambient,
                )
            )
        except Exception as exc:
            log.error(
                "Failed to compile for destination",
                extra={"destination": destination_id, "file": document.source.path, "error": str(exc)},
            )
            diagnostics = list(exc.diagnostics) if isinstance(exc, ProviderCompileError) else []
            results.append(
                DestinationResult(
                    destination_id=destination_id,
                    success=False,
                    error=exc,
                    diagnostics=diagnostics,
                )
            )

    summary = summarize_results(results)
    if summary.total and summary.succeeded == 0:
        log.error(
            "All %d destinations failed for %s",
            summary.total,
            document.source.path or document.source.id or "inline document",
        )
        raise CompilationFailedError(results)
    if summary.partial:
        log.warning(
            "Partial success: %d/%d destinations compiled for %s",
            summary.succeeded,
            summary.total,
            document.source.path or document.source.id or "inline document",
        )
    else:
        log.info("All %d destinations compiled successfully", summary.total)
    return results


def _compile_destination(
    document: RulesetDocument,
    provider: Provider,
    *,
    registry: ProviderRegistry,
    project_config: Dict[str, Any],
    project_config_path: Optional[str],
    base_dir: str,
    runtime: RuntimeContext,
    log: LoggerLike,
    template: Optional[TemplateOptions],
    ambient: Any,
) -> DestinationResult:
    destination_id = provider.name
    effective_config = project_config
    template_options = template

    if provider.preparation is not None:
        prepared: Optional[CompilationOptions] = provider.preparation.prepare(document, project_config, log)
        if prepared is not None:
            if prepared.project_config_overrides:
                effective_config = {**project_config, **prepared.project_config_overrides}
            template_options = merge_template_options(template, prepared.template)

    destination_config = merge_provider_config(document, effective_config, destination_id)
    diagnostics = _config_diagnostics(provider, destination_config)
    for diag in diagnostics:
        log.warning(diag.message, extra={"destination": destination_id})

    templated = prefers_templating(
        document.frontmatter,
        effective_config,
        template_options.force if template_options else None,
    )
    compiled = compile_document(
        document,
        destination_id,
        effective_config,
        template=template_options,
        ambient_partials=ambient,
        destinations=registry.ids(),
        provider_name=provider.name,
        log=log,
    )

    outputs = provider.write(
        WriteContext(
            compiled=compiled,
            dest_path=os.path.join(base_dir, destination_id),
            config=destination_config,
            logger=log,
            document=document,
            project_config=effective_config,
            runtime=runtime,
            capabilities=required_capabilities(
                destination_config,
                templated=templated,
                template=template_options,
            ),
            project_config_path=project_config_path,
        )
    )
    return DestinationResult(
        destination_id=destination_id,
        success=True,
        outputs=list(outputs or []),
        diagnostics=diagnostics,
    )


__all__ = [
    "DEFAULT_OUTPUT_DIR",
    "ResultSummary",
    "summarize_results",
    "merge_template_options",
    "required_capabilities",
    "compile_for_destinations",
]
