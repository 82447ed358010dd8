"""Provider settings decoded from frontmatter and project config.

Frontmatter may configure a provider as a bare boolean (``cursor: false``)
or as a mapping (``cursor: {enabled: true, outputPath: ...}``). The shape is
decoded once, here, into a tagged :data:`ProviderSetting` so callers never
have to re-inspect raw values.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Union

from rulesets.core.types import RulesetDocument
from rulesets.core.utils.merge import deep_merge

logger = logging.getLogger(__name__)

PARTIAL_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


# ===== Tagged Setting Variants =====


@dataclass(frozen=True)
class Unset:
    """No signal for this provider."""

    config: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Disabled:
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EnabledImplicit:
    """A config block without an explicit flag; presence opts in."""

    config: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EnabledExplicit:
    config: Dict[str, Any] = field(default_factory=dict)


ProviderSetting = Union[Unset, Disabled, EnabledImplicit, EnabledExplicit]

UNSET = Unset()


def is_truthy(value: Any) -> Optional[bool]:
    """Parse a boolean-ish value, returning ``None`` when undecidable."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def decode_provider_setting(value: Any) -> ProviderSetting:
    """Decode a raw frontmatter/config value into a tagged setting."""
    if value is None:
        return UNSET
    if isinstance(value, bool):
        return EnabledExplicit() if value else Disabled()
    if isinstance(value, Mapping):
        config = dict(value)
        enabled = config.get("enabled")
        if isinstance(enabled, bool):
            return EnabledExplicit(config) if enabled else Disabled(config)
        return EnabledImplicit(config)
    return UNSET


def is_enabled(setting: ProviderSetting) -> Optional[bool]:
    """True/False for an enabling/disabling setting, ``None`` for :class:`Unset`."""
    if isinstance(setting, Unset):
        return None
    return not isinstance(setting, Disabled)


# ===== Frontmatter Readers =====


def resolve_provider_settings(frontmatter: Optional[Mapping[str, Any]], provider_id: str) -> ProviderSetting:
    """Decode the new-form ``<provider_id>`` frontmatter entry."""
    if not frontmatter:
        return UNSET
    return decode_provider_setting(frontmatter.get(provider_id))


def read_legacy_destination_config(
    frontmatter: Optional[Mapping[str, Any]], provider_id: str
) -> Optional[Dict[str, Any]]:
    """Return ``destinations.<provider_id>`` when it is a mapping."""
    if not frontmatter:
        return None
    block = frontmatter.get("destinations")
    if not isinstance(block, Mapping):
        return None
    config = block.get(provider_id)
    if not isinstance(config, Mapping):
        return None
    return dict(config)


def read_project_provider_setting(
    project_config: Optional[Mapping[str, Any]], provider_id: str
) -> ProviderSetting:
    """Decode ``providers.<id>`` from project config, falling back to a top-level ``<id>`` key."""
    if not project_config:
        return UNSET
    providers = project_config.get("providers")
    if isinstance(providers, Mapping) and provider_id in providers:
        return decode_provider_setting(providers.get(provider_id))
    return decode_provider_setting(project_config.get(provider_id))


def merge_provider_config(
    document: RulesetDocument,
    project_config: Optional[Mapping[str, Any]],
    provider_id: str,
) -> Dict[str, Any]:
    """Merge every config layer for one provider, lowest priority first.

    1. project ``providers.<id>`` keys (except ``config``)
    2. project ``providers.<id>.config``
    3. legacy frontmatter ``destinations.<id>``
    4. new-form frontmatter ``<id>`` mapping
    """
    merged: Dict[str, Any] = {}

    providers = (project_config or {}).get("providers")
    project_provider = providers.get(provider_id) if isinstance(providers, Mapping) else None
    if isinstance(project_provider, Mapping):
        merged = deep_merge(merged, {k: v for k, v in project_provider.items() if k != "config" and v is not None})
        nested = project_provider.get("config")
        if isinstance(nested, Mapping):
            merged = deep_merge(merged, nested)

    legacy = read_legacy_destination_config(document.frontmatter, provider_id)
    if legacy:
        merged = deep_merge(merged, legacy)

    setting = resolve_provider_settings(document.frontmatter, provider_id)
    if setting.config:
        merged = deep_merge(merged, setting.config)

    return merged


# ===== Template Options =====


@dataclass
class TemplateOptions:
    """Per-destination overrides for the template renderer."""

    force: Optional[bool] = None
    helpers: Dict[str, Callable[..., Any]] = field(default_factory=dict)
    partials: Dict[str, str] = field(default_factory=dict)
    strict: Optional[bool] = None
    no_escape: Optional[bool] = None


@dataclass
class CompilationOptions:
    """What a provider's preparation hook hands back to the orchestrator."""

    template: Optional[TemplateOptions] = None
    project_config_overrides: Optional[Dict[str, Any]] = None


def _collect_partials(
    provider_id: str,
    raw_partials: Any,
    partials: Dict[str, str],
    log: logging.Logger | logging.LoggerAdapter,
) -> None:
    if not isinstance(raw_partials, Mapping):
        return
    for name, template in raw_partials.items():
        if not isinstance(name, str) or not PARTIAL_NAME_PATTERN.match(name):
            log.warning(
                "Invalid partial name, skipping entry",
                extra={"destination": provider_id, "partial": name},
            )
            continue
        if isinstance(template, str) and template.strip():
            partials[name] = template
        elif template is not None:
            log.warning(
                "Ignoring non-string partial",
                extra={"destination": provider_id, "partial": name},
            )


def build_template_options(
    provider_id: str,
    config: Optional[Mapping[str, Any]],
    log: logging.Logger | logging.LoggerAdapter | None = None,
    *,
    helpers: Optional[Mapping[str, Callable[..., Any]]] = None,
    additional_partials: Optional[Mapping[str, str]] = None,
) -> Optional[CompilationOptions]:
    """Build compile-time overrides from a provider's ``template`` block.

    The block may be ``true`` (force templating) or a mapping with
    ``force``/``enabled``, ``partials``, ``strict``, ``noEscape`` and
    ``projectConfigOverrides``. The older ``handlebars`` key is read when
    ``template`` is absent.

    Returns:
        ``None`` when nothing needs overriding.
    """
    log = log or logger
    raw: Any = None
    if config:
        raw = config.get("template", config.get("handlebars"))

    extra_partials = {
        name: text
        for name, text in (additional_partials or {}).items()
        if isinstance(text, str) and text.strip()
    }

    if raw is True:
        return CompilationOptions(
            template=TemplateOptions(force=True, helpers=dict(helpers or {}), partials=extra_partials)
        )

    if raw is not None and raw is not False and not isinstance(raw, Mapping):
        log.warning(
            "Ignoring invalid template configuration",
            extra={"destination": provider_id, "value": raw},
        )
        return None

    block: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    partials = dict(extra_partials)
    _collect_partials(provider_id, block.get("partials"), partials, log)

    force = block.get("force") is True or block.get("enabled") is True
    strict = block.get("strict") if isinstance(block.get("strict"), bool) else None
    no_escape_raw = block.get("noEscape", block.get("no_escape"))
    no_escape = no_escape_raw if isinstance(no_escape_raw, bool) else None
    overrides = block.get("projectConfigOverrides")
    project_overrides = dict(overrides) if isinstance(overrides, Mapping) else None

    has_template = bool(force or helpers or partials or strict is not None or no_escape is not None)
    if not has_template and project_overrides is None:
        return None

    template = None
    if has_template:
        template = TemplateOptions(
            force=True if force else None,
            helpers=dict(helpers or {}),
            partials=partials,
            strict=strict,
            no_escape=no_escape,
        )
    return CompilationOptions(template=template, project_config_overrides=project_overrides)


__all__ = [
    "PARTIAL_NAME_PATTERN",
    "Unset",
    "Disabled",
    "EnabledImplicit",
    "EnabledExplicit",
    "ProviderSetting",
    "UNSET",
    "is_truthy",
    "decode_provider_setting",
    "is_enabled",
    "resolve_provider_settings",
    "read_legacy_destination_config",
    "read_project_provider_setting",
    "merge_provider_config",
    "TemplateOptions",
    "CompilationOptions",
    "build_template_options",
]
