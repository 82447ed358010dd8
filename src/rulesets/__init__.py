"""
Rulesets - compile one rule document into many provider artifacts

Rulesets takes a parsed rule document and writes destination-specific
configuration files (Cursor, Windsurf, Claude Code, Copilot, ...) through a
registry of pluggable providers.
"""

__version__ = "0.4.0"
__all__ = ["__version__"]
