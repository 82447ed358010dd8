"""Document model and shared value types.

Documents arrive already parsed; nothing in this module reads from disk.
Provider compile calls and compatibility checks return :data:`Result`
values instead of raising, so the orchestrator can treat typed failures
the same way as caught exceptions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Literal, Optional, Sequence, TypeVar, Union

from rulesets.core.utils.text import parse_frontmatter, strip_frontmatter_block

T = TypeVar("T")
E = TypeVar("E")

DiagnosticLevel = Literal["error", "warning", "info"]
SourceFormat = Literal["rule", "ruleset"]

ERROR_CODES = (
    "PROJECT_CONFIG_NOT_FOUND",
    "PROJECT_CONFIG_INVALID",
    "SOURCE_NOT_FOUND",
    "SOURCE_UNREADABLE",
    "PROVIDER_UNAVAILABLE",
    "PROVIDER_CAPABILITY_UNSUPPORTED",
    "RENDERER_UNAVAILABLE",
    "TRANSFORM_FAILED",
    "VALIDATION_ERROR",
    "INTERNAL_ERROR",
)


# ===== Diagnostics and Results =====


@dataclass(frozen=True)
class SourceLocation:
    line: int
    column: int
    offset: Optional[int] = None


@dataclass(frozen=True)
class Diagnostic:
    """A structured message attached to a document, provider, or artifact."""

    level: DiagnosticLevel
    message: str
    location: Optional[SourceLocation] = None
    hint: Optional[str] = None
    tags: tuple = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"level": self.level, "message": self.message}
        if self.location is not None:
            data["location"] = {"line": self.location.line, "column": self.location.column}
        if self.hint:
            data["hint"] = self.hint
        if self.tags:
            data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Diagnostic":
        level = data.get("level", "error")
        if level not in ("error", "warning", "info"):
            level = "error"
        location = None
        loc = data.get("location")
        if isinstance(loc, dict) and "line" in loc and "column" in loc:
            location = SourceLocation(line=int(loc["line"]), column=int(loc["column"]))
        return cls(
            level=level,
            message=str(data.get("message", "")),
            location=location,
            hint=data.get("hint"),
            tags=tuple(data.get("tags") or ()),
        )


def has_errors(diagnostics: Sequence[Diagnostic]) -> bool:
    return any(d.level == "error" for d in diagnostics)


@dataclass(frozen=True)
class RulesetError:
    """Typed error value carried inside a failed :class:`ResultErr`."""

    code: str
    message: str
    details: Any = None
    diagnostics: tuple = ()
    help: Optional[str] = None

    def __post_init__(self) -> None:
        if self.code not in ERROR_CODES:
            raise ValueError(f"Unknown error code: {self.code}")


@dataclass(frozen=True)
class ResultOk(Generic[T]):
    value: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class ResultErr(Generic[E]):
    error: E
    ok: Literal[False] = False


Result = Union[ResultOk[T], ResultErr[E]]


def result_ok(value: T) -> ResultOk[T]:
    return ResultOk(value)


def result_err(error: E) -> ResultErr[E]:
    return ResultErr(error)


def is_ok(result: Result) -> bool:
    return bool(result.ok)


def is_err(result: Result) -> bool:
    return not result.ok


# ===== Document Model =====


@dataclass(frozen=True)
class RulesetSource:
    """Where a document came from.

    Attributes:
        id: Stable document identifier
        contents: Raw text including any frontmatter block
        path: Filesystem path of the source, when known
        format: ``"rule"`` or ``"ruleset"``
        is_rule: ``False`` marks a document that must not be compiled
    """

    id: str
    contents: str
    path: Optional[str] = None
    format: SourceFormat = "rule"
    is_rule: Optional[bool] = None


@dataclass(frozen=True)
class RulesetDocumentMetadata:
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    version: Optional[str] = None
    hash: Optional[str] = None


@dataclass(frozen=True)
class RulesetAst:
    sections: tuple = ()
    imports: tuple = ()
    variables: tuple = ()
    markers: tuple = ()


@dataclass(frozen=True)
class RulesetDocument:
    """A parsed rule document handed in by the parser."""

    source: RulesetSource
    metadata: RulesetDocumentMetadata = field(default_factory=RulesetDocumentMetadata)
    ast: RulesetAst = field(default_factory=RulesetAst)
    diagnostics: tuple = ()

    @property
    def frontmatter(self) -> Dict[str, Any]:
        return self.metadata.frontmatter

    @property
    def body(self) -> str:
        """Document contents with any leading frontmatter block removed."""
        return strip_frontmatter_block(self.source.contents)


def document_from_text(
    contents: str,
    *,
    path: Optional[str] = None,
    id: Optional[str] = None,
    format: SourceFormat = "rule",
    detect_rule: bool = False,
) -> RulesetDocument:
    """Build a :class:`RulesetDocument` from raw text.

    Only the frontmatter is parsed; the AST stays empty. The id defaults to
    ``path``; a document with neither keeps an empty id. With
    ``detect_rule`` a document without ``rule``/``rulesets`` metadata is
    flagged as not-a-rule.
    """
    parsed = parse_frontmatter(contents)
    fm = parsed.frontmatter
    is_rule: Optional[bool] = None
    if detect_rule:
        is_rule = "rule" in fm or "rulesets" in fm
    version = None
    rule_block = fm.get("rule")
    if isinstance(rule_block, dict) and rule_block.get("version") is not None:
        version = str(rule_block["version"])
    elif fm.get("version") is not None:
        version = str(fm["version"])
    return RulesetDocument(
        source=RulesetSource(
            id=id or path or "",
            contents=contents,
            path=path,
            format=format,
            is_rule=is_rule,
        ),
        metadata=RulesetDocumentMetadata(frontmatter=fm, version=version),
    )


# ===== Compilation =====


@dataclass(frozen=True)
class CompileTarget:
    """Where and how a provider should emit an artifact."""

    provider_id: str
    output_path: str
    capabilities: tuple = ()


@dataclass(frozen=True)
class CompileArtifact:
    target: CompileTarget
    contents: str
    diagnostics: tuple = ()


@dataclass(frozen=True)
class CompiledOutput:
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CompileContext:
    destination_id: str
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CompiledDoc:
    """A document rendered for one destination, ready to be written."""

    source: RulesetSource
    ast: RulesetAst
    output: CompiledOutput
    context: CompileContext
    frontmatter: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RuntimeContext:
    version: str
    cwd: str
    cache_dir: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)


@dataclass
class DestinationResult:
    """Outcome of compiling one document for one destination."""

    destination_id: str
    success: bool
    error: Optional[BaseException] = None
    outputs: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


__all__ = [
    "ERROR_CODES",
    "SourceLocation",
    "Diagnostic",
    "has_errors",
    "RulesetError",
    "ResultOk",
    "ResultErr",
    "Result",
    "result_ok",
    "result_err",
    "is_ok",
    "is_err",
    "RulesetSource",
    "RulesetDocumentMetadata",
    "RulesetAst",
    "RulesetDocument",
    "document_from_text",
    "CompileTarget",
    "CompileArtifact",
    "CompiledOutput",
    "CompileContext",
    "CompiledDoc",
    "RuntimeContext",
    "DestinationResult",
]
