"""Provider registry.

An explicit, ordered ``id -> Provider`` map handed to the orchestrator.
There is no module-level singleton: tests and callers build as many
registries as they need.

Compatibility is evaluated once, when a provider is registered. A provider
whose SDK major does not match the host is never added; its diagnostics
are kept in :attr:`ProviderRegistry.rejected`.

Usage:
    registry = create_default_registry()
    registry.load_from_config(project_config)   # third-party providers

    for provider_id in registry.ids():
        provider = registry.get(provider_id)
"""
from __future__ import annotations

import importlib
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Type

from rulesets.core.exceptions import ProviderIncompatibleError, ProviderNotFoundError
from rulesets.core.types import Diagnostic

from .base import Provider, evaluate_provider_compatibility

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Ordered collection of compatible providers."""

    def __init__(
        self,
        providers: Optional[Iterable[Provider]] = None,
        *,
        sdk_version: Optional[str] = None,
    ) -> None:
        self.sdk_version = sdk_version
        self._providers: Dict[str, Provider] = {}
        self.rejected: Dict[str, List[Diagnostic]] = {}
        for provider in providers or ():
            self.register(provider)

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, provider: Provider, *, replace: bool = True) -> bool:
        """Add ``provider`` if its SDK version is compatible.

        Returns:
            True if the provider was registered
        """
        provider_id = provider.name
        diagnostics = evaluate_provider_compatibility(provider.handshake, self.sdk_version)
        if diagnostics:
            self.rejected[provider_id] = diagnostics
            logger.warning(
                "Excluding incompatible provider '%s': %s",
                provider_id,
                "; ".join(d.message for d in diagnostics),
            )
            return False
        if provider_id in self._providers and not replace:
            logger.debug("Provider '%s' already registered; keeping existing instance", provider_id)
            return False
        self._providers[provider_id] = provider
        self.rejected.pop(provider_id, None)
        return True

    def register_strict(self, provider: Provider) -> None:
        """Like :meth:`register` but raise when the provider is incompatible."""
        if not self.register(provider):
            diagnostics = self.rejected.get(provider.name)
            if diagnostics:
                raise ProviderIncompatibleError(provider.name, diagnostics)

    def unregister(self, provider_id: str) -> None:
        self._providers.pop(provider_id, None)

    # =========================================================================
    # Lookup
    # =========================================================================

    def get(self, provider_id: str) -> Optional[Provider]:
        return self._providers.get(provider_id)

    def require(self, provider_id: str) -> Provider:
        provider = self._providers.get(provider_id)
        if provider is None:
            raise ProviderNotFoundError(provider_id)
        return provider

    def has(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def ids(self) -> List[str]:
        return list(self._providers.keys())

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __iter__(self) -> Iterator[Provider]:
        return iter(list(self._providers.values()))

    def __len__(self) -> int:
        return len(self._providers)

    # =========================================================================
    # Config-driven loading
    # =========================================================================

    def load_from_config(self, project_config: Optional[Mapping[str, Any]]) -> List[str]:
        """Register providers declared as ``providers.<id>.class`` in project config.

        Load failures are logged and skipped.

        Returns:
            Ids of providers that were registered
        """
        loaded: List[str] = []
        providers = (project_config or {}).get("providers")
        if not isinstance(providers, Mapping):
            return loaded
        for provider_id, cfg in providers.items():
            if not isinstance(cfg, Mapping):
                continue
            class_path = cfg.get("class")
            if not isinstance(class_path, str) or not class_path.strip():
                continue
            provider = load_provider(class_path.strip())
            if provider is None:
                continue
            if provider.name != provider_id:
                logger.warning(
                    "Provider loaded from '%s' reports id '%s', expected '%s'",
                    class_path,
                    provider.name,
                    provider_id,
                )
            if self.register(provider):
                loaded.append(provider.name)
        return loaded


def load_provider(class_path: str) -> Optional[Provider]:
    """Import ``package.module.ClassName`` and instantiate it."""
    try:
        module_path, class_name = class_path.rsplit(".", 1)
        module = importlib.import_module(module_path)
        provider_class: Type[Provider] = getattr(module, class_name)
    except (ImportError, AttributeError, ValueError) as e:
        logger.warning("Failed to load provider from '%s': %s", class_path, e)
        return None

    try:
        provider = provider_class()
    except Exception as e:
        logger.warning("Failed to instantiate provider '%s': %s", class_path, e)
        return None
    if not isinstance(provider, Provider):
        logger.warning("'%s' is not a Provider subclass", class_path)
        return None
    return provider


__all__ = ["ProviderRegistry", "load_provider"]
