"""Destination providers and the provider SDK."""
from __future__ import annotations

from .base import (
    PROVIDER_SDK_VERSION,
    NoopProvider,
    Provider,
    ProviderCompileInput,
    ProviderHandshake,
    RuntimeDescriptor,
    SandboxDescriptor,
    TemplatePreparation,
    WriteContext,
    evaluate_provider_compatibility,
    is_provider_compatible,
    missing_capabilities,
    unsupported_capability,
)
from .first_party import DEFAULT_PROVIDER_ORDER, create_default_providers, create_default_registry
from .registry import ProviderRegistry, load_provider

__all__ = [
    "PROVIDER_SDK_VERSION",
    "NoopProvider",
    "Provider",
    "ProviderCompileInput",
    "ProviderHandshake",
    "RuntimeDescriptor",
    "SandboxDescriptor",
    "TemplatePreparation",
    "WriteContext",
    "evaluate_provider_compatibility",
    "is_provider_compatible",
    "missing_capabilities",
    "unsupported_capability",
    "DEFAULT_PROVIDER_ORDER",
    "create_default_providers",
    "create_default_registry",
    "ProviderRegistry",
    "load_provider",
]
