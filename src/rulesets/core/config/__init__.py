"""Project configuration."""
from .project import (
    CONFIG_CANDIDATES,
    PROJECT_CONFIG_SCHEMA,
    ProjectConfig,
    find_project_config,
    load_project_config,
    validate_project_config,
)

__all__ = [
    "CONFIG_CANDIDATES",
    "PROJECT_CONFIG_SCHEMA",
    "ProjectConfig",
    "find_project_config",
    "load_project_config",
    "validate_project_config",
]
