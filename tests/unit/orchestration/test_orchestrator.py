from __future__ import annotations

import logging
from pathlib import Path

import pytest

from rulesets.core.exceptions import (
    CompilationFailedError,
    ProviderCompileError,
    ProviderNotFoundError,
    TemplateRenderError,
)
from rulesets.core.orchestrator import (
    compile_for_destinations,
    merge_template_options,
    required_capabilities,
    summarize_results,
)
from rulesets.core.providers import ProviderRegistry, create_default_registry
from rulesets.core.providers.settings import CompilationOptions, TemplateOptions
from helpers.rulesets_fixtures import EchoProvider, ExplodingProvider, RefusingProvider, make_document, write_rule


def _registry(*providers) -> ProviderRegistry:
    return ProviderRegistry(providers)


def test_partial_failure_returns_every_result(tmp_path: Path, caplog) -> None:
    registry = _registry(EchoProvider("a"), ExplodingProvider("b"), EchoProvider("c"))
    doc = make_document("Body")

    with caplog.at_level(logging.WARNING):
        results = compile_for_destinations(doc, ["a", "b", "c"], registry=registry, cwd=str(tmp_path))

    assert [r.destination_id for r in results] == ["a", "b", "c"]
    assert [r.success for r in results] == [True, False, True]
    assert isinstance(results[1].error, OSError)
    for result in (results[0], results[2]):
        assert len(result.outputs) == 1
        assert Path(result.outputs[0]).read_text(encoding="utf-8") == "Body"
    assert any("Partial success: 2/3" in r.getMessage() for r in caplog.records)


def test_total_failure_raises_aggregate_error(tmp_path: Path) -> None:
    registry = _registry(ExplodingProvider("a"), RefusingProvider("b"))

    with pytest.raises(CompilationFailedError) as excinfo:
        compile_for_destinations(make_document(), ["a", "b", "missing"], registry=registry, cwd=str(tmp_path))

    error = excinfo.value
    assert [r.destination_id for r in error.results] == ["a", "b", "missing"]
    assert isinstance(error.errors["b"], ProviderCompileError)
    assert error.results[1].diagnostics[0].message == "b refuses"
    assert isinstance(error.errors["missing"], ProviderNotFoundError)


def test_unregistered_destination_does_not_stop_the_loop(tmp_path: Path) -> None:
    registry = _registry(EchoProvider("a"))
    results = compile_for_destinations(make_document(), ["ghost", "a"], registry=registry, cwd=str(tmp_path))

    assert [r.success for r in results] == [False, True]
    assert isinstance(results[0].error, ProviderNotFoundError)


def test_base_destination_path(tmp_path: Path) -> None:
    provider = EchoProvider("a")
    compile_for_destinations(make_document(), ["a"], registry=_registry(provider), cwd=str(tmp_path))
    assert provider.calls[0].target.output_path == str(tmp_path / ".ruleset" / "dist" / "a")

    compile_for_destinations(
        make_document(), ["a"], {"output": "build"}, registry=_registry(provider), cwd=str(tmp_path)
    )
    assert provider.calls[1].target.output_path == str(tmp_path / "build" / "a")


def test_auto_selection_uses_frontmatter(tmp_path: Path) -> None:
    registry = _registry(EchoProvider("a"), EchoProvider("b"))
    doc = make_document(frontmatter={"b": False})

    results = compile_for_destinations(doc, "auto", registry=registry, cwd=str(tmp_path))

    assert [r.destination_id for r in results] == ["a"]


def test_nothing_selected_returns_empty(tmp_path: Path) -> None:
    doc = make_document("notes", {"title": "x"}, detect_rule=True)
    assert compile_for_destinations(doc, registry=_registry(EchoProvider("a")), cwd=str(tmp_path)) == []


def test_templating_off_keeps_literal_text(tmp_path: Path) -> None:
    provider = EchoProvider("a")
    doc = make_document("Hi {{uppercase name}}", {"name": "x"})

    compile_for_destinations(doc, ["a"], registry=_registry(provider), cwd=str(tmp_path))

    assert provider.calls[0].rendered.contents == "Hi {{uppercase name}}"
    assert provider.calls[0].target.capabilities == ("render:markdown",)


def test_preparation_can_force_templating(tmp_path: Path) -> None:
    provider = EchoProvider("a")

    class Force:
        def prepare(self, document, project_config, logger):
            return CompilationOptions(template=TemplateOptions(force=True))

    provider.preparation = Force()
    doc = make_document("Hi {{ provider.id | uppercase }}")

    compile_for_destinations(doc, ["a"], registry=_registry(provider), cwd=str(tmp_path))

    assert provider.calls[0].rendered.contents == "Hi A"
    assert provider.calls[0].target.capabilities == ("render:template",)


def test_frontmatter_template_block_is_read_by_first_party_providers(tmp_path: Path) -> None:
    registry = create_default_registry()
    doc = make_document(
        '{% include "sig" %}',
        {"cursor": {"template": {"force": True, "partials": {"sig": "signed {{ provider.id }}"}}}},
        path=str(tmp_path / "a.rule.md"),
    )

    results = compile_for_destinations(doc, ["cursor", "zed"], registry=registry, cwd=str(tmp_path))

    assert [r.success for r in results] == [True, True]
    cursor_file = tmp_path / ".ruleset" / "dist" / "cursor" / "a.md"
    zed_file = tmp_path / ".ruleset" / "dist" / "zed" / "a.md"
    assert cursor_file.read_text(encoding="utf-8") == "signed cursor"
    assert zed_file.read_text(encoding="utf-8") == '{% include "sig" %}'


def test_preparation_project_overrides_are_scoped_to_destination(tmp_path: Path) -> None:
    a, b = EchoProvider("a"), EchoProvider("b")

    class Override:
        def prepare(self, document, project_config, logger):
            return CompilationOptions(project_config_overrides={"rule": {"template": True}})

    a.preparation = Override()
    doc = make_document("{{ provider.id }}")

    compile_for_destinations(doc, ["a", "b"], registry=_registry(a, b), cwd=str(tmp_path))

    assert a.calls[0].rendered.contents == "a"
    assert b.calls[0].rendered.contents == "{{ provider.id }}"
    assert a.calls[0].project_config == {"rule": {"template": True}}
    assert b.calls[0].project_config == {}


def test_ambient_partials_are_loaded_once_per_run(project: Path, monkeypatch) -> None:
    from rulesets.core.compiler import partials as partials_module

    (project / ".ruleset" / "partials").mkdir()
    (project / ".ruleset" / "partials" / "sig.md").write_text("sig-{{ provider.id }}", encoding="utf-8")
    doc = write_rule(project, "main.rule.md", '{% include "sig" %}', {"rule": {"template": True}})

    scans = []
    original = partials_module.discover_partials

    def counting(*args, **kwargs):
        scans.append(1)
        return original(*args, **kwargs)

    monkeypatch.setattr(partials_module, "discover_partials", counting)
    a, b = EchoProvider("a"), EchoProvider("b")

    compile_for_destinations(doc, ["a", "b"], registry=_registry(a, b), cwd=str(project))

    assert a.calls[0].rendered.contents == "sig-a"
    assert b.calls[0].rendered.contents == "sig-b"
    assert len(scans) == 1


def test_explicit_partials_replace_ambient_discovery(project: Path) -> None:
    (project / ".ruleset" / "partials").mkdir()
    (project / ".ruleset" / "partials" / "sig.md").write_text("ambient", encoding="utf-8")
    doc = write_rule(project, "main.rule.md", '{% include "sig" %}', {"rule": {"template": True}})
    provider = EchoProvider("a")

    compile_for_destinations(
        doc, ["a"], registry=_registry(provider), cwd=str(project), partials={"sig": "explicit"}
    )

    assert provider.calls[0].rendered.contents == "explicit"


def test_template_failure_is_recorded(tmp_path: Path) -> None:
    registry = _registry(EchoProvider("a"), EchoProvider("b"))
    doc = make_document("{{ b_only }}", {"rule": {"template": True}})

    with pytest.raises(CompilationFailedError) as excinfo:
        compile_for_destinations(doc, ["a", "b"], registry=registry, cwd=str(tmp_path))

    assert all(isinstance(e, TemplateRenderError) for e in excinfo.value.errors.values())


def test_invalid_destination_config_is_a_warning(tmp_path: Path) -> None:
    registry = create_default_registry()
    doc = make_document("x", {"cursor": {"alwaysApply": "sometimes"}}, path=str(tmp_path / "a.md"))

    results = compile_for_destinations(doc, ["cursor"], registry=registry, cwd=str(tmp_path))

    assert results[0].success
    assert results[0].diagnostics[0].level == "warning"
    assert "alwaysApply" in results[0].diagnostics[0].message


def test_idempotent_rendering(tmp_path: Path) -> None:
    registry = create_default_registry()
    doc = make_document("# Rules\n\n{{ provider.id }}", {"rule": {"template": True}}, path=str(tmp_path / "r.md"))

    first = compile_for_destinations(doc, "auto", registry=registry, cwd=str(tmp_path))
    snapshot = {p: Path(p).read_text(encoding="utf-8") for r in first for p in r.outputs}
    second = compile_for_destinations(doc, "auto", registry=registry, cwd=str(tmp_path))

    assert {p: Path(p).read_text(encoding="utf-8") for r in second for p in r.outputs} == snapshot


def test_required_capabilities() -> None:
    assert required_capabilities({}, templated=False) == ("render:markdown",)
    assert required_capabilities({"capabilities": ["output:sections", 3]}, templated=True) == (
        "output:sections",
        "render:template",
    )


def test_requested_helpers_and_partials_add_capabilities() -> None:
    options = TemplateOptions(helpers={"shout": str.upper}, partials={"sig": "s"})

    assert required_capabilities({}, templated=True, template=options) == (
        "render:template",
        "render:template:helpers",
        "render:template:partials",
    )
    assert required_capabilities({}, templated=False, template=options) == ("render:markdown",)
    assert required_capabilities({}, templated=True, template=TemplateOptions(force=True)) == ("render:template",)


def test_provider_without_partials_capability_is_refused(tmp_path: Path) -> None:
    class PlainTemplates(EchoProvider):
        capabilities = ("render:markdown", "render:template")

    provider = PlainTemplates("plain")
    doc = make_document('{% include "sig" %}')
    template = TemplateOptions(force=True, partials={"sig": "signed"})

    with pytest.raises(CompilationFailedError) as excinfo:
        compile_for_destinations(doc, ["plain"], registry=_registry(provider), cwd=str(tmp_path), template=template)

    error = excinfo.value.errors["plain"]
    assert isinstance(error, ProviderCompileError)
    assert error.error.code == "PROVIDER_CAPABILITY_UNSUPPORTED"
    assert error.error.details == {"capability": "render:template:partials"}
    assert provider.calls == []


def test_first_party_providers_accept_requested_partials(tmp_path: Path) -> None:
    doc = make_document('{% include "sig" %}', path=str(tmp_path / "a.rule.md"))
    template = TemplateOptions(force=True, partials={"sig": "signed"})

    results = compile_for_destinations(
        doc, ["cursor", "windsurf", "cline"], registry=create_default_registry(), cwd=str(tmp_path), template=template
    )

    assert all(r.success for r in results)


def test_merge_template_options() -> None:
    base = TemplateOptions(helpers={"h": len}, partials={"p": "base", "q": "q"}, strict=False)
    override = TemplateOptions(force=True, partials={"p": "override"})

    merged = merge_template_options(base, override)

    assert merged.force is True
    assert merged.partials == {"p": "override", "q": "q"}
    assert merged.helpers == {"h": len}
    assert merged.strict is False
    assert merge_template_options(None, override) is override


def test_summarize_results(tmp_path: Path) -> None:
    registry = _registry(EchoProvider("a"), ExplodingProvider("b"))
    results = compile_for_destinations(make_document(), ["a", "b"], registry=registry, cwd=str(tmp_path))
    summary = summarize_results(results)
    assert (summary.total, summary.succeeded, summary.failed) == (2, 1, 1)
    assert summary.partial and not summary.all_succeeded
