from __future__ import annotations

import pytest

from rulesets.core.compiler import build_output_metadata, compile_document, prefers_templating
from rulesets.core.exceptions import TemplateRenderError
from rulesets.core.providers.settings import TemplateOptions
from helpers.rulesets_fixtures import make_document


@pytest.mark.parametrize(
    "frontmatter, project, force, expected",
    [
        ({}, {}, None, False),
        ({}, {}, True, True),
        ({"rule": {"template": False}}, {}, True, True),
        ({"rule": {"template": True}}, {}, None, True),
        ({"rule": {"template": False}}, {"rule": {"template": True}}, None, False),
        ({}, {"rule": {"template": True}}, None, True),
        ({"rulesets": {"compiler": "handlebars"}}, {}, None, True),
        ({"rulesets": {"compiler": "jinja"}}, {}, None, True),
        ({}, {"compiler": "handlebars"}, None, True),
        ({"rule": {"template": "yes"}}, {}, None, False),
        ({}, {}, False, False),
    ],
)
def test_prefers_templating(frontmatter, project, force, expected) -> None:
    assert prefers_templating(frontmatter, project, force) is expected


def test_template_syntax_is_literal_without_opt_in() -> None:
    doc = make_document("Hello {{uppercase name}}\n", {"name": "x"})
    compiled = compile_document(doc, "cursor")
    assert compiled.output.content == "Hello {{uppercase name}}"


def test_templating_renders_when_enabled() -> None:
    doc = make_document("Hello {{ file.name | uppercase }} from {{ provider.id }}", {"name": "x", "rule": {"template": True}})
    compiled = compile_document(doc, "cursor", destinations=["cursor"])
    assert compiled.output.content == "Hello X from cursor"


def test_forced_templating_uses_option_partials_over_ambient() -> None:
    doc = make_document('{% include "sig" %}')
    calls = []

    def ambient():
        calls.append(1)
        return {"sig": "ambient", "other": "x"}

    compiled = compile_document(
        doc,
        "cursor",
        template=TemplateOptions(force=True, partials={"sig": "explicit"}),
        ambient_partials=ambient,
    )

    assert compiled.output.content == "explicit"
    assert calls == [1]


def test_ambient_partials_not_loaded_without_templating() -> None:
    def ambient():
        raise AssertionError("should not be called")

    compiled = compile_document(make_document("plain"), "cursor", ambient_partials=ambient)
    assert compiled.output.content == "plain"


def test_render_failure_is_wrapped() -> None:
    doc = make_document("{{ nope }}", {"rule": {"template": True}}, path="/repo/a.md")
    with pytest.raises(TemplateRenderError) as excinfo:
        compile_document(doc, "windsurf")
    assert "/repo/a.md" in str(excinfo.value)
    assert "windsurf" in str(excinfo.value)


def test_empty_document_compiles_to_empty_output() -> None:
    doc = make_document("   \n")
    compiled = compile_document(doc, "cursor", {"output": "dist"})

    assert compiled.output.content == ""
    assert compiled.output.metadata == {}
    assert compiled.context.destination_id == "cursor"
    assert compiled.context.config == {"output": "dist"}


def test_context_config_merges_destination_frontmatter() -> None:
    doc = make_document("x", {"cursor": {"outputPath": "a/"}})
    compiled = compile_document(doc, "cursor", {"output": "dist", "outputPath": "b/"})
    assert compiled.context.config == {"output": "dist", "outputPath": "a/"}


def test_output_metadata() -> None:
    frontmatter = {
        "title": "Style",
        "version": "1.0",
        "labels": ["a"],
        "custom": True,
        "rule": {"version": "2.0", "globs": [" *.py ", "", 3]},
        "cursor": {"priority": "high"},
    }
    metadata = build_output_metadata(frontmatter, "cursor")

    assert metadata["version"] == "2.0"
    assert metadata["rule.globs"] == ["*.py"]
    assert metadata["custom"] is True
    assert metadata["priority"] == "high"
    assert "description" not in metadata


def test_compile_is_idempotent() -> None:
    doc = make_document("Same {{ provider.id }}", {"rule": {"template": True}})
    first = compile_document(doc, "zed")
    second = compile_document(doc, "zed")
    assert first.output == second.output
