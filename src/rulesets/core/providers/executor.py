"""Run a provider's compile step in-process or inside a subprocess sandbox.

Subprocess providers receive ``{"handshake": ..., "input": ...}`` as JSON on
stdin and answer on stdout with::

    {"ok": true, "artifact": {...}}          # or "artifacts": [...]
    {"ok": false, "diagnostics": [...]}      # or "error": "message"

Launch failures, non-zero exits and unparsable output become error
diagnostics; the executor never raises for a misbehaving subprocess.
"""
from __future__ import annotations

import json
import logging
import os
import subprocess
import sys
from typing import TYPE_CHECKING, Any, Dict, List

from rulesets.core.types import (
    CompileArtifact,
    CompileTarget,
    Diagnostic,
    Result,
    result_err,
    result_ok,
)

if TYPE_CHECKING:
    from .base import Provider, ProviderCompileInput

logger = logging.getLogger(__name__)

SUBPROCESS_MODE = "subprocess"


def _sandbox_diagnostic(provider_id: str, message: str, hint: str | None = None) -> Diagnostic:
    return Diagnostic(
        level="error",
        message=message,
        hint=hint or None,
        tags=("provider", provider_id, "sandbox"),
    )


def serialize_input(input: "ProviderCompileInput") -> Dict[str, Any]:
    document = input.document
    source = document.source
    payload: Dict[str, Any] = {
        "document": {
            "source": {
                "id": source.id,
                "path": source.path,
                "contents": source.contents,
                "format": source.format,
            },
            "metadata": {
                "frontmatter": document.metadata.frontmatter,
                "version": document.metadata.version,
            },
            "diagnostics": [d.to_dict() for d in document.diagnostics],
        },
        "context": {
            "cwd": input.context.cwd,
            "cacheDir": input.context.cache_dir,
            "env": dict(input.context.env),
        },
        "target": _target_to_dict(input.target),
        "config": input.config,
        "projectConfig": input.project_config,
        "projectConfigPath": input.project_config_path,
    }
    if input.rendered is not None:
        payload["rendered"] = {
            "target": _target_to_dict(input.rendered.target),
            "contents": input.rendered.contents,
            "diagnostics": [d.to_dict() for d in input.rendered.diagnostics],
        }
    return payload


def _target_to_dict(target: CompileTarget) -> Dict[str, Any]:
    return {
        "providerId": target.provider_id,
        "outputPath": target.output_path,
        "capabilities": list(target.capabilities),
    }


def _diagnostics_from_items(provider_id: str, items: List[Any]) -> List[Diagnostic]:
    diagnostics: List[Diagnostic] = []
    for item in items:
        if isinstance(item, dict):
            diagnostics.append(Diagnostic.from_dict(item))
        else:
            diagnostics.append(
                _sandbox_diagnostic(
                    provider_id,
                    f'Provider subprocess for "{provider_id}" returned a malformed diagnostic.',
                    repr(item),
                )
            )
    return diagnostics


def _artifact_from_dict(data: Dict[str, Any], fallback: CompileTarget) -> CompileArtifact:
    raw_target = data.get("target")
    if not isinstance(raw_target, dict):
        raw_target = {}
    capabilities = raw_target.get("capabilities")
    raw_diagnostics = data.get("diagnostics")
    if not isinstance(raw_diagnostics, list):
        raw_diagnostics = []
    target = CompileTarget(
        provider_id=str(raw_target.get("providerId", fallback.provider_id)),
        output_path=str(raw_target.get("outputPath", fallback.output_path)),
        capabilities=tuple(capabilities) if isinstance(capabilities, list) else fallback.capabilities,
    )
    return CompileArtifact(
        target=target,
        contents=str(data.get("contents", "")),
        diagnostics=tuple(_diagnostics_from_items(fallback.provider_id, raw_diagnostics)),
    )


def run_subprocess(provider: "Provider", input: "ProviderCompileInput") -> Result:
    handshake = provider.handshake
    provider_id = handshake.provider_id
    sandbox = handshake.sandbox
    if sandbox is None or not (sandbox.entry or sandbox.args):
        return result_err(
            [
                _sandbox_diagnostic(
                    provider_id,
                    f'Provider "{provider_id}" declared a subprocess sandbox but did not provide an entry script.',
                )
            ]
        )

    command = sandbox.command or sys.executable
    args: List[str] = list(sandbox.args) if sandbox.args else [str(sandbox.entry)]
    env = dict(os.environ)
    env.update(sandbox.env)
    payload = json.dumps({"handshake": handshake.to_dict(), "input": serialize_input(input)}, default=str)

    logger.debug("Running provider %s in subprocess: %s %s", provider_id, command, " ".join(args))
    try:
        completed = subprocess.run(
            [command, *args],
            input=payload,
            capture_output=True,
            text=True,
            env=env,
            cwd=input.context.cwd or None,
            check=False,
        )
    except OSError as exc:
        return result_err(
            [_sandbox_diagnostic(provider_id, f'Failed to launch provider subprocess for "{provider_id}"', str(exc))]
        )

    if completed.returncode != 0:
        return result_err(
            [
                _sandbox_diagnostic(
                    provider_id,
                    f'Provider subprocess for "{provider_id}" exited with code {completed.returncode}.',
                    completed.stderr,
                )
            ]
        )

    try:
        parsed = json.loads(completed.stdout)
    except ValueError as exc:
        return result_err(
            [
                _sandbox_diagnostic(
                    provider_id,
                    f'Failed to parse provider subprocess output for "{provider_id}"',
                    str(exc),
                )
            ]
        )

    if isinstance(parsed, dict):
        if parsed.get("ok"):
            artifacts = parsed.get("artifacts")
            if isinstance(artifacts, list) and all(isinstance(a, dict) for a in artifacts):
                return result_ok([_artifact_from_dict(a, input.target) for a in artifacts])
            if isinstance(parsed.get("artifact"), dict):
                return result_ok(_artifact_from_dict(parsed["artifact"], input.target))
        if isinstance(parsed.get("diagnostics"), list):
            return result_err(_diagnostics_from_items(provider_id, parsed["diagnostics"]))
        message = parsed.get("error")
    else:
        message = None

    return result_err(
        [
            _sandbox_diagnostic(
                provider_id,
                str(message or "Provider subprocess returned an invalid payload."),
                completed.stdout,
            )
        ]
    )


def execute_provider_compile(provider: "Provider", input: "ProviderCompileInput") -> Result:
    """Dispatch a compile call according to the provider's sandbox mode."""
    sandbox = provider.handshake.sandbox
    mode = sandbox.mode if sandbox is not None else "in-process"
    if mode == SUBPROCESS_MODE:
        return run_subprocess(provider, input)
    return provider.compile(input)


__all__ = ["SUBPROCESS_MODE", "serialize_input", "run_subprocess", "execute_provider_compile"]
