"""Jinja2 template rendering for rule bodies.

Helpers are registered both as filters and as globals, so ``{{ name | uppercase }}``
and ``{{ uppercase(name) }}`` both work. Partials are served from a
``DictLoader`` and pulled in with ``{% include "name" %}``.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from jinja2 import DictLoader, Environment, StrictUndefined, Undefined, pass_context
from jinja2.runtime import Context

from rulesets.core.exceptions import TemplateRenderError
from rulesets.core.types import RulesetDocument

logger = logging.getLogger(__name__)

Helper = Callable[..., Any]


def uppercase(value: Any) -> str:
    return "" if value is None else str(value).upper()


@pass_context
def if_provider(context: Context, ids: Any) -> bool:
    """True when the current destination is one of ``ids`` (comma separated or a list)."""
    provider = context.get("provider") or {}
    current = provider.get("id") if isinstance(provider, Mapping) else None
    if isinstance(ids, str):
        wanted = [part.strip() for part in ids.split(",")]
    else:
        wanted = [str(part).strip() for part in ids or ()]
    return current in wanted


CORE_HELPERS: Dict[str, Helper] = {
    "uppercase": uppercase,
    "if_provider": if_provider,
}


def build_template_context(
    document: RulesetDocument,
    destination_id: str,
    *,
    project_config: Optional[Mapping[str, Any]] = None,
    destinations: Iterable[str] = (),
    metadata: Optional[Mapping[str, Any]] = None,
    provider_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Variables visible to a template: provider, file, project, registry, timestamp."""
    frontmatter = document.frontmatter or {}
    name = frontmatter.get("name") if isinstance(frontmatter.get("name"), str) else None
    return {
        "provider": {"id": destination_id, "name": provider_name or destination_id},
        "file": {
            "name": name,
            "path": document.source.path,
            "frontmatter": frontmatter,
            "metadata": dict(metadata or {}),
        },
        "project": dict(project_config or {}),
        "registry": {"destinations": list(destinations)},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class TemplateRenderer:
    """Renders one body per call; registered helpers/partials persist across calls."""

    def __init__(self) -> None:
        self._helpers: Dict[str, Helper] = {}
        self._partials: Dict[str, str] = {}

    def register_helper(self, name: str, helper: Helper) -> None:
        self._helpers[name] = helper

    def register_partial(self, name: str, template: str) -> None:
        self._partials[name] = template

    def create_environment(
        self,
        *,
        helpers: Optional[Mapping[str, Helper]] = None,
        partials: Optional[Mapping[str, str]] = None,
        strict: bool = True,
        no_escape: bool = False,
    ) -> Environment:
        all_partials = dict(self._partials)
        all_partials.update(partials or {})
        env = Environment(
            loader=DictLoader(all_partials),
            undefined=StrictUndefined if strict else Undefined,
            autoescape=not no_escape,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        for source in (CORE_HELPERS, self._helpers, helpers or {}):
            for name, helper in source.items():
                env.filters[name] = helper
                env.globals[name] = helper
        return env

    def render(
        self,
        body: str,
        context: Mapping[str, Any],
        *,
        source_path: Optional[str] = None,
        destination_id: Optional[str] = None,
        helpers: Optional[Mapping[str, Helper]] = None,
        partials: Optional[Mapping[str, str]] = None,
        strict: Optional[bool] = None,
        no_escape: Optional[bool] = None,
    ) -> str:
        """Render ``body`` with ``context``.

        Raises:
            TemplateRenderError: On syntax errors, undefined variables (strict mode),
                missing partials, or a failing helper
        """
        env = self.create_environment(
            helpers=helpers,
            partials=partials,
            strict=True if strict is None else strict,
            no_escape=False if no_escape is None else no_escape,
        )
        try:
            return env.from_string(body).render(**context)
        except Exception as exc:
            logger.error(
                "Template rendering failed",
                extra={"source_path": source_path or "<inline>", "destination": destination_id},
            )
            raise TemplateRenderError(
                str(exc),
                source_path=source_path,
                destination_id=destination_id,
            ) from exc


__all__ = ["Helper", "CORE_HELPERS", "uppercase", "if_provider", "build_template_context", "TemplateRenderer"]
