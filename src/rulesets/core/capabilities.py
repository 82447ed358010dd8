"""Capability registry.

Capabilities are named features a provider may implement. The registry is
closed: every first-party id is declared here once. Providers may still
advertise ids the registry does not know about; those are synthesized on
the fly and always marked experimental.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional, Union

from rulesets import __version__

CAPABILITY_VERSION_TAG = __version__


@dataclass(frozen=True)
class CapabilityDescriptor:
    """A capability definition, optionally marked optional for one provider."""

    id: str
    description: str
    introduced_in: str = CAPABILITY_VERSION_TAG
    deprecated_in: Optional[str] = None
    experimental: bool = False
    requires: tuple = ()
    optional: bool = False


CapabilityInput = Union[str, CapabilityDescriptor, Mapping[str, object]]


def define_capability(
    id: str,
    description: str,
    *,
    introduced_in: Optional[str] = None,
    deprecated_in: Optional[str] = None,
    experimental: bool = False,
    requires: Iterable[str] = (),
) -> CapabilityDescriptor:
    return CapabilityDescriptor(
        id=id,
        description=description,
        introduced_in=introduced_in or CAPABILITY_VERSION_TAG,
        deprecated_in=deprecated_in,
        experimental=experimental,
        requires=tuple(requires),
    )


MARKDOWN_RENDER = define_capability(
    "render:markdown",
    "Supports Markdown passthrough rendering managed by the orchestrator.",
)
TEMPLATE_RENDER = define_capability(
    "render:template",
    "Supports Jinja2 templating with orchestrator-managed helpers and partials.",
)
TEMPLATE_CUSTOM_HELPERS = define_capability(
    "render:template:helpers",
    "Allows provider-defined template helpers in addition to orchestrator defaults.",
    requires=["render:template"],
    experimental=True,
)
TEMPLATE_CUSTOM_PARTIALS = define_capability(
    "render:template:partials",
    "Allows provider-defined partial injection during rendering.",
    requires=["render:template"],
    experimental=True,
)
SANDBOX_SUBPROCESS = define_capability(
    "sandbox:subprocess",
    "Executes the provider inside a managed subprocess sandbox.",
)
SANDBOX_IN_PROCESS = define_capability(
    "sandbox:in-process",
    "Runs the provider inside the orchestrator process without sandboxing.",
    experimental=True,
)
OUTPUT_FILESYSTEM = define_capability(
    "output:filesystem",
    "Writes compiled artifacts to filesystem destinations resolved by the orchestrator.",
)
OUTPUT_SECTIONS = define_capability(
    "output:sections",
    "Emits section-indexed output for downstream consumers instead of a single file.",
    experimental=True,
)
DIAGNOSTICS_STRUCTURED = define_capability(
    "diagnostics:structured",
    "Emits structured diagnostics with source locations and severity metadata.",
)
TELEMETRY_EVENTS = define_capability(
    "telemetry:events",
    "Emits telemetry events back to orchestrator instrumentation hooks.",
    experimental=True,
)
WATCH_INCREMENTAL = define_capability(
    "watch:incremental",
    "Supports incremental recompilation and watch negotiation with the orchestrator.",
    experimental=True,
)

_REGISTRY: Dict[str, CapabilityDescriptor] = {
    cap.id: cap
    for cap in (
        MARKDOWN_RENDER,
        TEMPLATE_RENDER,
        TEMPLATE_CUSTOM_HELPERS,
        TEMPLATE_CUSTOM_PARTIALS,
        SANDBOX_SUBPROCESS,
        SANDBOX_IN_PROCESS,
        OUTPUT_FILESYSTEM,
        OUTPUT_SECTIONS,
        DIAGNOSTICS_STRUCTURED,
        TELEMETRY_EVENTS,
        WATCH_INCREMENTAL,
    )
}


def get_capability(capability_id: str) -> Optional[CapabilityDescriptor]:
    return _REGISTRY.get(capability_id)


def is_known_capability(capability_id: str) -> bool:
    return capability_id in _REGISTRY


def list_capabilities() -> List[CapabilityDescriptor]:
    return list(_REGISTRY.values())


def resolve_capabilities(ids: Iterable[str]) -> List[CapabilityDescriptor]:
    """Map ids to registry descriptors, silently dropping unknown ids."""
    return [_REGISTRY[i] for i in ids if i in _REGISTRY]


def as_capability_descriptor(capability: CapabilityInput) -> CapabilityDescriptor:
    """Normalize a capability id, descriptor or mapping into a descriptor."""
    if isinstance(capability, CapabilityDescriptor):
        return capability
    if isinstance(capability, str):
        known = _REGISTRY.get(capability)
        if known is not None:
            return known
        return define_capability(
            capability,
            f"Custom capability ({capability})",
            experimental=True,
        )
    data = dict(capability)
    return define_capability(
        str(data["id"]),
        str(data.get("description") or f"Custom capability ({data['id']})"),
        introduced_in=data.get("introduced_in"),  # type: ignore[arg-type]
        deprecated_in=data.get("deprecated_in"),  # type: ignore[arg-type]
        experimental=bool(data.get("experimental", False)),
        requires=data.get("requires") or (),  # type: ignore[arg-type]
    )


def provider_capability(capability: CapabilityInput, *, optional: Optional[bool] = None) -> CapabilityDescriptor:
    """Build the descriptor a provider advertises in its handshake.

    ``optional`` wins over an ``optional`` key carried by a mapping input.
    """
    descriptor = as_capability_descriptor(capability)
    from_input = None
    if isinstance(capability, Mapping) and "optional" in capability:
        from_input = bool(capability["optional"])
    elif isinstance(capability, CapabilityDescriptor):
        from_input = capability.optional
    flag = optional if optional is not None else (from_input or False)
    if flag == descriptor.optional:
        return descriptor
    return replace(descriptor, optional=flag)


__all__ = [
    "CAPABILITY_VERSION_TAG",
    "CapabilityDescriptor",
    "CapabilityInput",
    "define_capability",
    "get_capability",
    "is_known_capability",
    "list_capabilities",
    "resolve_capabilities",
    "as_capability_descriptor",
    "provider_capability",
    "MARKDOWN_RENDER",
    "TEMPLATE_RENDER",
    "TEMPLATE_CUSTOM_HELPERS",
    "TEMPLATE_CUSTOM_PARTIALS",
    "SANDBOX_SUBPROCESS",
    "SANDBOX_IN_PROCESS",
    "OUTPUT_FILESYSTEM",
    "OUTPUT_SECTIONS",
    "DIAGNOSTICS_STRUCTURED",
    "TELEMETRY_EVENTS",
    "WATCH_INCREMENTAL",
]
