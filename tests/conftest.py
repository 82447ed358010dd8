import logging
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'rulesets' and tests/helpers importable as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from rulesets.core.stdlib_logging import reset_stdlib_logging_for_tests


@pytest.fixture(autouse=True)
def _isolate_logging():
    """Undo any handler a test installed through configure_stdlib_logging."""
    root = logging.getLogger()
    level = root.level
    yield
    reset_stdlib_logging_for_tests()
    root.setLevel(level)


@pytest.fixture(autouse=True)
def _isolate_global_partials(tmp_path_factory, monkeypatch):
    """Point the global partials home at an empty directory."""
    home = tmp_path_factory.mktemp("rulesets-home")
    monkeypatch.setenv("RULESETS_HOME", str(home))
    return home


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root containing ``.ruleset/rules``."""
    (tmp_path / ".ruleset" / "rules").mkdir(parents=True)
    return tmp_path
