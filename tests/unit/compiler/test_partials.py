from __future__ import annotations

import logging
from pathlib import Path

from rulesets.core.compiler.partials import (
    PartialsCache,
    discover_partials,
    find_project_root,
    partial_name,
)
from helpers.rulesets_fixtures import write_rule


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_find_project_root(project: Path) -> None:
    source = project / ".ruleset" / "rules" / "nested" / "a.md"
    _write(source, "x")
    assert find_project_root(source) == project.resolve()


def test_no_project_root(tmp_path: Path) -> None:
    assert find_project_root(tmp_path / "loose" / "a.md") is None


def test_partial_name() -> None:
    assert partial_name(Path("team/header.rule.md")) == "team/header"
    assert partial_name(Path("@footer.md"), strip_at_prefix=True) == "footer"
    assert partial_name(Path("snippet.j2")) == "snippet"


def test_discovery_precedence(project: Path, _isolate_global_partials: Path) -> None:
    _write(_isolate_global_partials / "partials" / "shared.md", "global")
    _write(_isolate_global_partials / "partials" / "only-global.md", "g")
    _write(project / ".config" / "ruleset" / "partials" / "shared.md", "config")
    _write(project / ".ruleset" / "partials" / "shared.md", "project")
    _write(project / ".ruleset" / "partials" / "team" / "header.hbs", "header")
    _write(project / ".ruleset" / "rules" / "@shared.md", "adjacent")
    doc = write_rule(project, "main.rule.md", "body")

    partials = discover_partials(doc.source.path)

    assert partials == {
        "shared": "adjacent",
        "only-global": "g",
        "team/header": "header",
    }


def test_rules_dir_only_contributes_at_prefixed_files(project: Path) -> None:
    _write(project / ".ruleset" / "rules" / "@sig.md", "sig")
    doc = write_rule(project, "main.rule.md", "body")

    assert discover_partials(doc.source.path) == {"sig": "sig"}


def test_git_entries_are_skipped(project: Path) -> None:
    _write(project / ".ruleset" / "partials" / ".gitkeep", "")
    _write(project / ".ruleset" / "partials" / ".git" / "HEAD", "ref")
    _write(project / ".ruleset" / "partials" / "ok.md", "ok")
    doc = write_rule(project, "main.rule.md", "body")

    assert discover_partials(doc.source.path) == {"ok": "ok"}


def test_symlinked_partials_are_ignored(project: Path, tmp_path_factory) -> None:
    outside = tmp_path_factory.mktemp("outside")
    _write(outside / "secret.hbs", "sensitive data")
    _write(outside / "nested" / "deep.md", "deep secret")
    partials_dir = project / ".ruleset" / "partials"
    _write(partials_dir / "ok.md", "ok")
    (partials_dir / "leak.hbs").symlink_to(outside / "secret.hbs")
    (partials_dir / "linked").symlink_to(outside / "nested", target_is_directory=True)
    (project / ".ruleset" / "rules" / "@leak.md").symlink_to(outside / "secret.hbs")
    doc = write_rule(project, "main.rule.md", "body")

    assert discover_partials(doc.source.path) == {"ok": "ok"}


def test_unreadable_partial_warns(project: Path, caplog) -> None:
    (project / ".ruleset" / "partials").mkdir()
    (project / ".ruleset" / "partials" / "bad.md").write_bytes(b"\xff\xfe\x00bad")
    doc = write_rule(project, "main.rule.md", "body")

    with caplog.at_level(logging.WARNING):
        assert discover_partials(doc.source.path) == {}
    assert any("Failed to load template partial" in r.getMessage() for r in caplog.records)


def test_inline_document_sees_only_global_partials(_isolate_global_partials: Path) -> None:
    _write(_isolate_global_partials / "partials" / "g.md", "global")
    assert discover_partials(None) == {"g": "global"}


def test_cache_loads_once(project: Path) -> None:
    _write(project / ".ruleset" / "partials" / "a.md", "A")
    doc = write_rule(project, "main.rule.md", "body")
    cache = PartialsCache(doc)

    first = cache.get()
    _write(project / ".ruleset" / "partials" / "b.md", "B")
    second = cache.get()

    assert first == second == {"a": "A"}
    assert cache.loads == 1
    assert PartialsCache(doc).get() == {"a": "A", "b": "B"}
