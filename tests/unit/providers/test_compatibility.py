from __future__ import annotations

import pytest

from rulesets.core.capabilities import TEMPLATE_RENDER
from rulesets.core.providers.base import (
    NoopProvider,
    ProviderHandshake,
    evaluate_provider_compatibility,
    is_provider_compatible,
    missing_capabilities,
    unsupported_capability,
)


def _handshake(sdk_version: str) -> ProviderHandshake:
    return ProviderHandshake(provider_id="demo", version="1.0.0", sdk_version=sdk_version)


def test_matching_major_has_no_diagnostics() -> None:
    assert evaluate_provider_compatibility(_handshake("0.9.1"), "0.4.0") == []
    assert is_provider_compatible(_handshake("0.1.0"), "0.4.0")


def test_mismatched_major_names_both_versions() -> None:
    diagnostics = evaluate_provider_compatibility(_handshake("1.2.0"), "0.4.0")

    assert len(diagnostics) == 1
    diag = diagnostics[0]
    assert diag.level == "error"
    assert "1.2.0" in diag.message and "0.4.0" in diag.message
    assert diag.tags == ("provider", "demo", "sdk")


def test_invalid_provider_version_is_reported() -> None:
    diagnostics = evaluate_provider_compatibility(_handshake("latest"), "0.4.0")

    assert len(diagnostics) == 1
    assert "latest" in diagnostics[0].message


def test_invalid_host_version_is_reported() -> None:
    diagnostics = evaluate_provider_compatibility(_handshake("0.4.0"), "v-next")

    assert len(diagnostics) == 1
    assert diagnostics[0].message == "Invalid orchestrator SDK version: v-next"


def test_accepts_provider_instances() -> None:
    provider = NoopProvider(_handshake("0.4.0"))
    assert evaluate_provider_compatibility(provider, "0.4.0") == []


def test_unsupported_capability_generates_typed_error() -> None:
    result = unsupported_capability("render:exotic")

    assert not result.ok
    assert result.error.code == "PROVIDER_CAPABILITY_UNSUPPORTED"
    assert "render:exotic" in result.error.message


def test_unsupported_capability_prefers_explicit_diagnostics() -> None:
    from rulesets.core.types import Diagnostic

    diag = Diagnostic(level="error", message="no xml here")
    result = unsupported_capability(TEMPLATE_RENDER, [diag])

    assert result.error == [diag]


def test_missing_capabilities() -> None:
    handshake = NoopProvider(_handshake("0.4.0")).handshake
    assert missing_capabilities(handshake, ["render:markdown"]) == ["render:markdown"]


def test_provider_without_id_is_rejected() -> None:
    from rulesets.core.providers.base import Provider

    class Nameless(Provider):
        def compile(self, input):  # pragma: no cover - never called
            raise AssertionError

    with pytest.raises(ValueError):
        Nameless()
