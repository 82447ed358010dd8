from __future__ import annotations

import json
import textwrap
from pathlib import Path

from rulesets.core.providers.base import (
    PROVIDER_SDK_VERSION,
    ProviderCompileInput,
    SandboxDescriptor,
)
from rulesets.core.providers.executor import execute_provider_compile, serialize_input
from rulesets.core.types import CompileArtifact, CompileTarget, RuntimeContext
from helpers.rulesets_fixtures import EchoProvider, make_document

SCRIPT = textwrap.dedent(
    """
    import json, sys
    payload = json.load(sys.stdin)
    body = payload["input"]["rendered"]["contents"]
    target = payload["input"]["target"]
    print(json.dumps({
        "ok": True,
        "artifact": {
            "target": {"outputPath": target["outputPath"] + "/sandboxed.md"},
            "contents": body.upper(),
            "diagnostics": [{"level": "warning", "message": "from " + payload["handshake"]["providerId"]}],
        },
    }))
    """
)


class SandboxedProvider(EchoProvider):
    def __init__(self, entry: str | None = None, args: tuple = ()) -> None:
        self.sandbox = SandboxDescriptor(mode="subprocess", entry=entry, args=args)
        super().__init__("sandboxed")


def _input(tmp_path: Path) -> ProviderCompileInput:
    target = CompileTarget(provider_id="sandboxed", output_path=str(tmp_path / "out"))
    return ProviderCompileInput(
        document=make_document("hello", {"created": "2024-01-01"}),
        context=RuntimeContext(version=PROVIDER_SDK_VERSION, cwd=str(tmp_path)),
        target=target,
        rendered=CompileArtifact(target=target, contents="hello"),
    )


def test_in_process_provider_is_called_directly(tmp_path: Path) -> None:
    provider = EchoProvider("local")
    result = execute_provider_compile(provider, _input(tmp_path))
    assert result.ok
    assert provider.calls


def test_subprocess_provider_round_trip(tmp_path: Path) -> None:
    script = tmp_path / "provider.py"
    script.write_text(SCRIPT, encoding="utf-8")
    provider = SandboxedProvider(entry=str(script))

    result = execute_provider_compile(provider, _input(tmp_path))

    assert result.ok, result
    artifact = result.value
    assert artifact.contents == "HELLO"
    assert artifact.target.output_path == str(tmp_path / "out" / "sandboxed.md")
    assert artifact.target.provider_id == "sandboxed"
    assert artifact.diagnostics[0].message == "from sandboxed"
    assert not provider.calls


def test_missing_entry_is_a_diagnostic(tmp_path: Path) -> None:
    result = execute_provider_compile(SandboxedProvider(), _input(tmp_path))
    assert not result.ok
    assert "did not provide an entry script" in result.error[0].message


def test_non_zero_exit_is_a_diagnostic(tmp_path: Path) -> None:
    script = tmp_path / "boom.py"
    script.write_text("import sys; sys.stderr.write('kaput'); sys.exit(3)", encoding="utf-8")

    result = execute_provider_compile(SandboxedProvider(entry=str(script)), _input(tmp_path))

    assert not result.ok
    assert "exited with code 3" in result.error[0].message
    assert result.error[0].hint == "kaput"


def test_unparsable_output_is_a_diagnostic(tmp_path: Path) -> None:
    script = tmp_path / "noise.py"
    script.write_text("print('not json')", encoding="utf-8")

    result = execute_provider_compile(SandboxedProvider(entry=str(script)), _input(tmp_path))

    assert not result.ok
    assert "Failed to parse" in result.error[0].message


def test_reported_failure_diagnostics_are_passed_through(tmp_path: Path) -> None:
    script = tmp_path / "refuse.py"
    script.write_text(
        "import json; print(json.dumps({'ok': False, 'diagnostics': [{'level': 'error', 'message': 'nope'}]}))",
        encoding="utf-8",
    )

    result = execute_provider_compile(SandboxedProvider(entry=str(script)), _input(tmp_path))

    assert not result.ok
    assert [d.message for d in result.error] == ["nope"]


def _run_printing(tmp_path: Path, payload: object):
    script = tmp_path / "odd.py"
    script.write_text(f"import json; print(json.dumps({payload!r}))", encoding="utf-8")
    return execute_provider_compile(SandboxedProvider(entry=str(script)), _input(tmp_path))


def test_malformed_failure_diagnostics_become_sandbox_diagnostics(tmp_path: Path) -> None:
    result = _run_printing(tmp_path, {"ok": False, "diagnostics": ["x", {"level": "error", "message": "real"}]})

    assert not result.ok
    assert "malformed diagnostic" in result.error[0].message
    assert result.error[0].hint == "'x'"
    assert "sandbox" in result.error[0].tags
    assert result.error[1].message == "real"


def test_malformed_artifact_fields_are_tolerated(tmp_path: Path) -> None:
    result = _run_printing(
        tmp_path,
        {"ok": True, "artifact": {"target": "nowhere", "contents": "ok", "diagnostics": [3]}},
    )

    assert result.ok
    artifact = result.value
    assert artifact.target.output_path == str(tmp_path / "out")
    assert artifact.contents == "ok"
    assert "malformed diagnostic" in artifact.diagnostics[0].message


def test_non_mapping_artifacts_are_an_invalid_payload(tmp_path: Path) -> None:
    result = _run_printing(tmp_path, {"ok": True, "artifacts": ["just text"]})

    assert not result.ok
    assert "invalid payload" in result.error[0].message


def test_serialize_input_is_json_safe(tmp_path: Path) -> None:
    payload = serialize_input(_input(tmp_path))
    encoded = json.dumps(payload, default=str)
    assert '"providerId": "sandboxed"' in encoded
    assert payload["rendered"]["contents"] == "hello"
