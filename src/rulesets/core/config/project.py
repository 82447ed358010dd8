"""Project configuration discovery and loading (YAML-only).

Search order when walking up from a start directory (first hit wins):

1. ``.ruleset/config.yaml``
2. ``.ruleset/config.yml``
3. ``.config/ruleset/config.yaml``
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from rulesets.core.exceptions import ProjectConfigError
from rulesets.core.schemas.validation import schema_errors
from rulesets.core.types import Diagnostic
from rulesets.core.utils.merge import deep_merge

logger = logging.getLogger(__name__)

PROJECT_CONFIG_SCHEMA = "project-config.schema.yaml"

CONFIG_CANDIDATES = (
    Path(".ruleset") / "config.yaml",
    Path(".ruleset") / "config.yml",
    Path(".config") / "ruleset" / "config.yaml",
)


@dataclass
class ProjectConfig:
    """Loaded project configuration.

    Attributes:
        data: Parsed mapping (empty when no file was found)
        path: File the mapping was read from, if any
        diagnostics: Schema warnings; they never stop loading
    """

    data: Dict[str, Any] = field(default_factory=dict)
    path: Optional[Path] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)


def find_project_config(start: Union[str, Path, None] = None) -> Optional[Path]:
    """Walk up from ``start`` (default: cwd) looking for a config file."""
    current = Path(start or Path.cwd()).resolve()
    if current.is_file():
        current = current.parent
    for directory in (current, *current.parents):
        for candidate in CONFIG_CANDIDATES:
            path = directory / candidate
            if path.is_file():
                return path
    return None


def validate_project_config(data: Dict[str, Any], *, path: Optional[Path] = None) -> List[Diagnostic]:
    """Check ``data`` against the bundled schema; violations become warnings."""
    tags = ("config", str(path)) if path is not None else ("config",)
    return [
        Diagnostic(level="warning", message=f"Invalid project config: {message}", tags=tags)
        for message in schema_errors(data, PROJECT_CONFIG_SCHEMA)
    ]


def load_project_config(
    path: Union[str, Path, None] = None,
    *,
    start: Union[str, Path, None] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ProjectConfig:
    """Load the project configuration.

    Args:
        path: Explicit config file; skips discovery
        start: Directory to start discovery from (default: cwd)
        overrides: Deep-merged over the loaded mapping

    Returns:
        The loaded config; a missing file yields an empty config

    Raises:
        ProjectConfigError: If the file cannot be parsed or is not a mapping
    """
    config_path = Path(path) if path is not None else find_project_config(start)
    if config_path is None or not config_path.exists():
        if path is not None:
            logger.debug("Project config not found at %s", config_path)
        data: Dict[str, Any] = {}
        if overrides:
            data = deep_merge(data, overrides)
        return ProjectConfig(data=data, path=None)

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ProjectConfigError(
            f"Failed to read project config {config_path}: {exc}",
            context={"code": "PROJECT_CONFIG_INVALID", "path": str(config_path)},
        ) from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ProjectConfigError(
            f"Project config must be a YAML mapping, got {type(raw).__name__}",
            context={"code": "PROJECT_CONFIG_INVALID", "path": str(config_path)},
        )

    data = deep_merge(raw, overrides) if overrides else raw
    diagnostics = validate_project_config(data, path=config_path)
    for diag in diagnostics:
        logger.warning("%s (%s)", diag.message, config_path)
    logger.debug("Loaded project config from %s", config_path)
    return ProjectConfig(data=data, path=config_path, diagnostics=diagnostics)


__all__ = [
    "PROJECT_CONFIG_SCHEMA",
    "CONFIG_CANDIDATES",
    "ProjectConfig",
    "find_project_config",
    "validate_project_config",
    "load_project_config",
]
