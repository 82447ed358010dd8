"""Destination selection.

Derives which registered destinations apply to one document. Rules, in
order:

1. A document explicitly flagged as not-a-rule selects nothing.
2. Legacy ``destinations`` block in frontmatter:
   - ``include: [ids]`` selects exactly those ids (known ones only);
   - otherwise keys naming registered ids select exactly those keys.
3. New form: every registered id starts enabled (unless the project config
   disables it), then each ``<id>`` frontmatter entry adjusts it.

The result is always a subset of the registry ids, in registry order.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from rulesets.core.providers.registry import ProviderRegistry
from rulesets.core.providers.settings import (
    Disabled,
    EnabledExplicit,
    EnabledImplicit,
    read_project_provider_setting,
    resolve_provider_settings,
)
from rulesets.core.types import RulesetDocument

logger = logging.getLogger(__name__)

RegistryLike = Union[ProviderRegistry, Sequence[str]]


def _registry_ids(registry: RegistryLike) -> List[str]:
    if isinstance(registry, ProviderRegistry):
        return registry.ids()
    seen: List[str] = []
    for provider_id in registry:
        if provider_id not in seen:
            seen.append(provider_id)
    return seen


def _in_registry_order(selected: Iterable[str], ids: Sequence[str]) -> List[str]:
    chosen = set(selected)
    return [provider_id for provider_id in ids if provider_id in chosen]


def select_legacy_destinations(frontmatter: Mapping[str, Any], ids: Sequence[str]) -> Optional[List[str]]:
    """Apply the legacy ``destinations`` block, or return ``None`` when it does not apply."""
    block = frontmatter.get("destinations")
    if not isinstance(block, Mapping):
        return None

    include = block.get("include")
    if isinstance(include, list) and all(isinstance(v, str) for v in include):
        unknown = [v for v in include if v not in ids]
        if unknown:
            logger.debug("Ignoring unregistered destinations in include list: %s", ", ".join(unknown))
        return _in_registry_order(include, ids)

    keys = [k for k in block.keys() if k in ids]
    if keys:
        return _in_registry_order(keys, ids)
    return None


def select_destinations(
    document: RulesetDocument,
    registry: RegistryLike,
    project_config: Optional[Mapping[str, Any]] = None,
) -> List[str]:
    """Return the enabled destination ids for ``document``.

    Args:
        document: Parsed document
        registry: Provider registry, or a plain sequence of ids
        project_config: Project configuration (may disable providers by default)

    Returns:
        Deduplicated ids in registry order
    """
    ids = _registry_ids(registry)

    if document.source.is_rule is False:
        return []

    frontmatter = document.frontmatter or {}

    legacy = select_legacy_destinations(frontmatter, ids)
    if legacy is not None:
        return legacy

    selected: List[str] = []
    for provider_id in ids:
        baseline = not isinstance(read_project_provider_setting(project_config, provider_id), Disabled)

        setting = resolve_provider_settings(frontmatter, provider_id)
        if isinstance(setting, Disabled):
            enabled = False
        elif isinstance(setting, (EnabledExplicit, EnabledImplicit)):
            enabled = True
        else:
            enabled = baseline

        if enabled:
            selected.append(provider_id)
    return selected


__all__ = ["select_destinations", "select_legacy_destinations"]
