"""
Bundled data resources.

Provides access to schemas shipped with the package using importlib.resources.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Get absolute path to a data file or directory.

    Example:
        >>> get_data_path("schemas", "project-config.schema.yaml")
        PosixPath('/path/to/rulesets/data/schemas/project-config.schema.yaml')
    """
    pkg = resources.files("rulesets.data")
    base = Path(str(pkg / subpackage))
    return base / filename if filename else base


__all__ = ["get_data_path"]
