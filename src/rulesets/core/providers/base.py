"""Base class and SDK types for destination providers.

A provider is constructed with a fixed :class:`ProviderHandshake` and
implements one required operation, :meth:`Provider.compile`, which returns
a :data:`~rulesets.core.types.Result` instead of raising. The default
:meth:`Provider.write` turns a compiled document into a compile call and
persists every artifact the call yields.

Providers that want compile-time overrides (forced templating, extra
partials, project config overrides) expose a ``preparation`` object; the
orchestrator checks for its presence rather than probing for methods.
"""
from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from rulesets import __version__
from rulesets.core.capabilities import (
    DIAGNOSTICS_STRUCTURED,
    MARKDOWN_RENDER,
    OUTPUT_FILESYSTEM,
    OUTPUT_SECTIONS,
    TEMPLATE_CUSTOM_HELPERS,
    TEMPLATE_CUSTOM_PARTIALS,
    TEMPLATE_RENDER,
    CapabilityDescriptor,
    CapabilityInput,
    as_capability_descriptor,
)
from rulesets.core.exceptions import ProviderCompileError, ProviderWriteError
from rulesets.core.types import (
    CompileArtifact,
    CompiledDoc,
    CompileTarget,
    Diagnostic,
    Result,
    RulesetDocument,
    RulesetDocumentMetadata,
    RulesetError,
    RuntimeContext,
    result_err,
    result_ok,
)
from rulesets.core.utils.io import ensure_directory, write_text, write_text_plain

from .settings import CompilationOptions, build_template_options, resolve_provider_settings

logger = logging.getLogger(__name__)

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

PROVIDER_SDK_VERSION = __version__
PROVIDER_VERSION = f"{__version__}-dev"

DEFAULT_CAPABILITIES: tuple = (
    MARKDOWN_RENDER,
    TEMPLATE_RENDER,
    TEMPLATE_CUSTOM_HELPERS,
    TEMPLATE_CUSTOM_PARTIALS,
    OUTPUT_SECTIONS,
    OUTPUT_FILESYSTEM,
    DIAGNOSTICS_STRUCTURED,
)

_SEMVER_MAJOR = re.compile(r"^(\d+)\.")


# ===== Handshake =====


@dataclass(frozen=True)
class SandboxDescriptor:
    mode: str = "in-process"
    command: Optional[str] = None
    entry: Optional[str] = None
    args: tuple = ()
    env: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RuntimeDescriptor:
    python: Optional[str] = None


@dataclass(frozen=True)
class ProviderHandshake:
    """A provider's static self-description."""

    provider_id: str
    version: str
    sdk_version: str
    capabilities: tuple = ()
    sandbox: Optional[SandboxDescriptor] = None
    runtime: Optional[RuntimeDescriptor] = None

    @property
    def capability_ids(self) -> List[str]:
        return [c.id for c in self.capabilities]

    def supports(self, capability_id: str) -> bool:
        return capability_id in self.capability_ids

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "providerId": self.provider_id,
            "version": self.version,
            "sdkVersion": self.sdk_version,
            "capabilities": self.capability_ids,
        }
        if self.sandbox is not None:
            data["sandbox"] = {"mode": self.sandbox.mode}
        return data


# ===== Compile Input / Write Context =====


@dataclass(frozen=True)
class ProviderCompileInput:
    document: RulesetDocument
    context: RuntimeContext
    target: CompileTarget
    config: Dict[str, Any] = field(default_factory=dict)
    project_config: Optional[Dict[str, Any]] = None
    project_config_path: Optional[str] = None
    rendered: Optional[CompileArtifact] = None


@dataclass
class WriteContext:
    """Everything a provider's write step receives from the orchestrator."""

    compiled: CompiledDoc
    dest_path: str
    config: Dict[str, Any] = field(default_factory=dict)
    logger: Optional[LoggerLike] = None
    document: Optional[RulesetDocument] = None
    project_config: Optional[Dict[str, Any]] = None
    runtime: Optional[RuntimeContext] = None
    capabilities: tuple = ()
    project_config_path: Optional[str] = None


class PreparationHook(Protocol):
    def prepare(
        self,
        document: RulesetDocument,
        project_config: Mapping[str, Any],
        logger: LoggerLike,
    ) -> Optional[CompilationOptions]: ...


class TemplatePreparation:
    """Reads a provider's frontmatter ``template`` block into compile options."""

    def __init__(self, provider_id: str) -> None:
        self.provider_id = provider_id

    def prepare(
        self,
        document: RulesetDocument,
        project_config: Mapping[str, Any],
        logger: LoggerLike,
    ) -> Optional[CompilationOptions]:
        setting = resolve_provider_settings(document.frontmatter, self.provider_id)
        return build_template_options(self.provider_id, setting.config, logger)


# ===== Compatibility =====


def _parse_major(version: str) -> Optional[int]:
    match = _SEMVER_MAJOR.match(version or "")
    return int(match.group(1)) if match else None


def _sdk_diagnostic(provider_id: str, message: str, details: Dict[str, str]) -> Diagnostic:
    detail_text = ", ".join(f"{k}={v}" for k, v in details.items())
    return Diagnostic(
        level="error",
        message=message,
        hint=f"Provider {provider_id} is incompatible with SDK {PROVIDER_SDK_VERSION}. Details: {detail_text}",
        tags=("provider", provider_id, "sdk"),
    )


def evaluate_provider_compatibility(
    handshake: "ProviderHandshake | Provider",
    sdk_version: Optional[str] = None,
) -> List[Diagnostic]:
    """Compare SDK major versions of the host and a provider.

    Returns:
        Zero diagnostics when compatible, otherwise exactly one error.
    """
    if isinstance(handshake, Provider):
        handshake = handshake.handshake
    expected = sdk_version or PROVIDER_SDK_VERSION
    provider_id = handshake.provider_id

    expected_major = _parse_major(expected)
    if expected_major is None:
        return [
            _sdk_diagnostic(
                provider_id,
                f"Invalid orchestrator SDK version: {expected}",
                {"orchestratorSdkVersion": expected},
            )
        ]

    actual = handshake.sdk_version
    actual_major = _parse_major(actual)
    if actual_major is None:
        return [
            _sdk_diagnostic(
                provider_id,
                f"Provider reports an invalid SDK version: {actual}",
                {"providerSdkVersion": actual},
            )
        ]

    if actual_major != expected_major:
        return [
            _sdk_diagnostic(
                provider_id,
                f"Provider targets SDK {actual} (major {actual_major}), expected {expected} (major {expected_major}).",
                {"expectedSdkVersion": expected, "providerSdkVersion": actual},
            )
        ]
    return []


def is_provider_compatible(handshake: "ProviderHandshake | Provider", sdk_version: Optional[str] = None) -> bool:
    return not evaluate_provider_compatibility(handshake, sdk_version)


# ===== Capability Failures =====


def unsupported_capability(
    capability: CapabilityInput,
    diagnostics: Optional[Sequence[Diagnostic]] = None,
) -> Result:
    """Typed failure for a target shape the provider cannot produce."""
    if diagnostics:
        return result_err(list(diagnostics))
    descriptor = as_capability_descriptor(capability)
    return result_err(
        RulesetError(
            code="PROVIDER_CAPABILITY_UNSUPPORTED",
            message=f"Capability {descriptor.id} is not supported by this provider.",
            details={"capability": descriptor.id},
        )
    )


def missing_capabilities(handshake: ProviderHandshake, required: Sequence[str]) -> List[str]:
    available = set(handshake.capability_ids)
    return [cap for cap in required if cap not in available]


def has_capability(target: Optional[CompileTarget], capability_id: str) -> bool:
    return bool(target and capability_id in target.capabilities)


# ===== Provider =====


class Provider(ABC):
    """Base for every destination provider.

    Subclasses set ``provider_id`` (and optionally ``capabilities``,
    ``sandbox``, ``atomic_writes``) and implement :meth:`compile`.

    Example:
        class NotesProvider(Provider):
            provider_id = "notes"

            def compile(self, input):
                path = resolve_output_path(input.target.output_path, input.config.get("outputPath"))
                return result_ok(CompileArtifact(replace(input.target, output_path=path), body))
    """

    provider_id: str = ""
    version: str = PROVIDER_VERSION
    sdk_version: str = PROVIDER_SDK_VERSION
    capabilities: tuple = DEFAULT_CAPABILITIES
    sandbox: Optional[SandboxDescriptor] = SandboxDescriptor(mode="in-process")
    runtime: Optional[RuntimeDescriptor] = RuntimeDescriptor(python=">=3.10")
    atomic_writes: bool = False

    def __init__(
        self,
        *,
        handshake: Optional[ProviderHandshake] = None,
        preparation: Optional[PreparationHook] = None,
    ) -> None:
        self._handshake = handshake or self.build_handshake()
        self.preparation: Optional[PreparationHook] = preparation

    # ===== Handshake =====

    def build_handshake(self) -> ProviderHandshake:
        if not self.provider_id:
            raise ValueError(f"{type(self).__name__} must define provider_id")
        return ProviderHandshake(
            provider_id=self.provider_id,
            version=self.version,
            sdk_version=self.sdk_version,
            capabilities=tuple(as_capability_descriptor(c) for c in self.capabilities),
            sandbox=self.sandbox,
            runtime=self.runtime,
        )

    @property
    def handshake(self) -> ProviderHandshake:
        return self._handshake

    @property
    def name(self) -> str:
        return self._handshake.provider_id

    def config_schema(self) -> Dict[str, Any]:
        """JSON Schema for this provider's destination config."""
        return {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "outputPath": {"type": "string"},
                "priority": {"type": "string", "enum": ["low", "medium", "high"]},
            },
            "additionalProperties": True,
        }

    # ===== Compile / Write =====

    @abstractmethod
    def compile(self, input: ProviderCompileInput) -> Result:
        """Produce one artifact or a list of artifacts, or a typed failure."""

    def write(self, ctx: WriteContext) -> List[str]:
        """Compile ``ctx.compiled`` into artifacts and persist each of them.

        Returns:
            Absolute paths of every file written

        Raises:
            ProviderCompileError: If compile returns a failed result
            ProviderWriteError: If a directory or file cannot be written
        """
        from .executor import execute_provider_compile

        log = ctx.logger or logger
        runtime = ctx.runtime or RuntimeContext(version=PROVIDER_SDK_VERSION, cwd=os.getcwd())
        target = CompileTarget(
            provider_id=self.name,
            output_path=ctx.dest_path,
            capabilities=tuple(ctx.capabilities),
        )

        missing = missing_capabilities(self.handshake, target.capabilities)
        if missing:
            result = unsupported_capability(missing[0])
        else:
            document = ctx.document or _document_from_compiled(ctx.compiled)
            rendered = CompileArtifact(target=target, contents=ctx.compiled.output.content)
            result = execute_provider_compile(
                self,
                ProviderCompileInput(
                    document=document,
                    context=runtime,
                    target=target,
                    config=dict(ctx.config),
                    project_config=ctx.project_config,
                    project_config_path=ctx.project_config_path,
                    rendered=rendered,
                ),
            )

        if not result.ok:
            raise ProviderCompileError(self.name, result.error)

        value = result.value
        artifacts = list(value) if isinstance(value, (list, tuple)) else [value]
        written: List[str] = []
        for artifact in artifacts:
            for diag in artifact.diagnostics:
                if diag.level == "warning":
                    log.warning("%s: %s", self.name, diag.message)
            written.append(self.persist(artifact, log, cwd=runtime.cwd))
        return written

    def persist(self, artifact: CompileArtifact, log: LoggerLike, *, cwd: Optional[str] = None) -> str:
        """Write one artifact to its (absolute, normalized) target path."""
        raw = artifact.target.output_path
        path = raw if os.path.isabs(raw) else os.path.join(cwd or os.getcwd(), raw)
        path = os.path.normpath(path)

        parent = Path(path).parent
        try:
            ensure_directory(parent)
        except OSError as exc:
            log.error(
                "Failed to create directory for provider",
                extra={"destination": self.name, "path": str(parent)},
            )
            raise ProviderWriteError(str(exc), path=str(parent), operation="mkdir") from exc

        try:
            if self.atomic_writes:
                write_text(path, artifact.contents)
            else:
                write_text_plain(path, artifact.contents)
        except OSError as exc:
            log.error(
                "Failed to write provider artifact",
                extra={"destination": self.name, "path": path},
            )
            raise ProviderWriteError(str(exc), path=path, operation="write") from exc

        log.info("Wrote %s artifact to %s", self.name, path)
        return path


def _document_from_compiled(compiled: CompiledDoc) -> RulesetDocument:
    return RulesetDocument(
        source=compiled.source,
        metadata=RulesetDocumentMetadata(frontmatter=dict(compiled.frontmatter)),
        ast=compiled.ast,
    )


class NoopProvider(Provider):
    """Pass-through provider: emits the rendered contents at the target path."""

    def __init__(self, handshake: ProviderHandshake) -> None:
        super().__init__(handshake=handshake)

    def compile(self, input: ProviderCompileInput) -> Result:
        rendered = input.rendered
        return result_ok(
            CompileArtifact(
                target=input.target,
                contents=rendered.contents if rendered else input.document.source.contents,
                diagnostics=rendered.diagnostics if rendered else (),
            )
        )


__all__ = [
    "LoggerLike",
    "PROVIDER_SDK_VERSION",
    "PROVIDER_VERSION",
    "DEFAULT_CAPABILITIES",
    "SandboxDescriptor",
    "RuntimeDescriptor",
    "ProviderHandshake",
    "ProviderCompileInput",
    "WriteContext",
    "PreparationHook",
    "TemplatePreparation",
    "evaluate_provider_compatibility",
    "is_provider_compatible",
    "unsupported_capability",
    "missing_capabilities",
    "has_capability",
    "Provider",
    "NoopProvider",
]
