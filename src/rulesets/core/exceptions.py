from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from rulesets.core.types import DestinationResult, Diagnostic, RulesetError


class RulesetsError(Exception):
    """Base exception for Rulesets."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ProviderNotFoundError(RulesetsError, LookupError):
    """Raised when a destination id has no registered provider."""

    def __init__(self, destination_id: str, *, context: Mapping[str, Any] | None = None) -> None:
        ctx = dict(context or {})
        ctx["destination_id"] = destination_id
        RulesetsError.__init__(self, f"No provider registered for destination '{destination_id}'", context=ctx)
        LookupError.__init__(self, str(self))
        self.destination_id = destination_id


class ProviderIncompatibleError(RulesetsError):
    """Raised when a provider's SDK version does not match the host."""

    def __init__(
        self,
        provider_id: str,
        diagnostics: Sequence["Diagnostic"],
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx["provider_id"] = provider_id
        messages = "; ".join(d.message for d in diagnostics) or "incompatible provider"
        super().__init__(f"Provider '{provider_id}' is incompatible: {messages}", context=ctx)
        self.provider_id = provider_id
        self.diagnostics: List["Diagnostic"] = list(diagnostics)


class ProviderCompileError(RulesetsError):
    """Raised when a provider's compile step returns a typed failure."""

    def __init__(
        self,
        provider_id: str,
        error: "RulesetError | Sequence[Diagnostic]",
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        from rulesets.core.types import RulesetError

        ctx = dict(context or {})
        ctx["provider_id"] = provider_id
        if isinstance(error, RulesetError):
            self.error: Optional[RulesetError] = error
            self.diagnostics: List["Diagnostic"] = list(error.diagnostics)
            ctx["code"] = error.code
            message = error.message
        else:
            self.error = None
            self.diagnostics = list(error)
            message = "; ".join(d.message for d in self.diagnostics) or "compile failed"
        super().__init__(f"Provider '{provider_id}' failed to compile: {message}", context=ctx)
        self.provider_id = provider_id


class TemplateRenderError(RulesetsError):
    """Raised when template rendering fails for one destination."""

    def __init__(
        self,
        message: str,
        *,
        source_path: str | None = None,
        destination_id: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if source_path:
            ctx["source_path"] = source_path
        if destination_id:
            ctx["destination_id"] = destination_id
        location = source_path or "<inline>"
        target = f" ({destination_id})" if destination_id else ""
        super().__init__(f"Template rendering failed for {location}{target}: {message}", context=ctx)
        self.source_path = source_path
        self.destination_id = destination_id


class ProviderWriteError(RulesetsError):
    """Raised when persisting an artifact fails."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        operation: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if path:
            ctx["path"] = path
        if operation:
            ctx["operation"] = operation
        full = f"Failed to {operation or 'write'} {path or 'artifact'}: {message}"
        super().__init__(full, context=ctx)
        self.path = path
        self.operation = operation


class ProjectConfigError(RulesetsError, ValueError):
    """Raised when the project configuration cannot be used."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        RulesetsError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class CompilationFailedError(RulesetsError):
    """Raised when every requested destination failed.

    Partial failures are returned as data; only total failure raises.
    """

    def __init__(
        self,
        results: Sequence["DestinationResult"],
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx["destinations"] = [r.destination_id for r in results]
        ids = ", ".join(r.destination_id for r in results) or "<none>"
        super().__init__(f"All destinations failed: {ids}", context=ctx)
        self.results: List["DestinationResult"] = list(results)

    @property
    def errors(self) -> Dict[str, BaseException]:
        return {r.destination_id: r.error for r in self.results if r.error is not None}


__all__ = [
    "RulesetsError",
    "ProviderNotFoundError",
    "ProviderIncompatibleError",
    "ProviderCompileError",
    "TemplateRenderError",
    "ProviderWriteError",
    "ProjectConfigError",
    "CompilationFailedError",
]
