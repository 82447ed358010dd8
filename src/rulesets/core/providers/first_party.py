"""First-party provider set in its canonical registry order."""
from __future__ import annotations

from typing import List, Optional

from .agents_md import AgentsMdProvider
from .base import Provider
from .claude_code import ClaudeCodeProvider
from .cline import ClineProvider
from .codex import CodexProvider
from .codex_agent import CodexAgentProvider
from .copilot import CopilotProvider
from .cursor import CursorProvider
from .registry import ProviderRegistry
from .roo_code import RooCodeProvider
from .simple import AmpProvider, GeminiProvider, OpenCodeProvider, ZedProvider
from .windsurf import WindsurfProvider

DEFAULT_PROVIDER_ORDER = (
    "cursor",
    "windsurf",
    "claude-code",
    "agents-md",
    "copilot",
    "codex",
    "roo-code",
    "cline",
    "codex-agent",
    "amp",
    "gemini",
    "opencode",
    "zed",
)

_PROVIDER_CLASSES = {
    "cursor": CursorProvider,
    "windsurf": WindsurfProvider,
    "claude-code": ClaudeCodeProvider,
    "agents-md": AgentsMdProvider,
    "copilot": CopilotProvider,
    "codex": CodexProvider,
    "roo-code": RooCodeProvider,
    "cline": ClineProvider,
    "codex-agent": CodexAgentProvider,
    "amp": AmpProvider,
    "gemini": GeminiProvider,
    "opencode": OpenCodeProvider,
    "zed": ZedProvider,
}


def create_default_providers() -> List[Provider]:
    """Fresh instances of every first-party provider."""
    return [_PROVIDER_CLASSES[provider_id]() for provider_id in DEFAULT_PROVIDER_ORDER]


def create_default_registry(*, sdk_version: Optional[str] = None) -> ProviderRegistry:
    return ProviderRegistry(create_default_providers(), sdk_version=sdk_version)


__all__ = ["DEFAULT_PROVIDER_ORDER", "create_default_providers", "create_default_registry"]
