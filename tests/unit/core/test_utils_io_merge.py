from __future__ import annotations

import logging
from pathlib import Path

import pytest

from rulesets.core.stdlib_logging import configure_stdlib_logging
from rulesets.core.utils.io import read_yaml, write_text, write_text_plain
from rulesets.core.utils.merge import deep_merge, merge_arrays


def test_deep_merge_does_not_mutate() -> None:
    base = {"a": {"b": 1, "c": [1]}, "d": 1}
    merged = deep_merge(base, {"a": {"c": ["+", 2]}, "e": 2})

    assert merged == {"a": {"b": 1, "c": [1, 2]}, "d": 1, "e": 2}
    assert base == {"a": {"b": 1, "c": [1]}, "d": 1}


def test_merge_arrays_markers() -> None:
    assert merge_arrays([1, 2], [3]) == [3]
    assert merge_arrays([1, 2], ["=", 3]) == [3]
    assert merge_arrays([1, 2], ["+", 3]) == [1, 2, 3]


def test_write_text_creates_parents(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b.md"
    write_text(target, "atomic")
    write_text_plain(tmp_path / "c" / "d.md", "plain")

    assert target.read_text(encoding="utf-8") == "atomic"
    assert (tmp_path / "c" / "d.md").read_text(encoding="utf-8") == "plain"
    assert not [p for p in (tmp_path / "a").iterdir() if p.name != "b.md"]


def test_read_yaml(tmp_path: Path) -> None:
    good = tmp_path / "good.yaml"
    good.write_text("a: 1\n", encoding="utf-8")
    bad = tmp_path / "bad.yaml"
    bad.write_text("a: [\n", encoding="utf-8")

    assert read_yaml(good) == {"a": 1}
    assert read_yaml(tmp_path / "missing.yaml", default={}) == {}
    assert read_yaml(bad, default="fallback") == "fallback"
    with pytest.raises(FileNotFoundError):
        read_yaml(tmp_path / "missing.yaml", raise_on_error=True)


def test_configure_stdlib_logging_writes_to_file(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "rulesets.log"
    configure_stdlib_logging(log_path=log_path, level="debug")
    configure_stdlib_logging(log_path=log_path, level="debug")

    logging.getLogger("rulesets.test").debug("hello file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    contents = log_path.read_text(encoding="utf-8")
    assert contents.count("hello file") == 1
