"""Document compilation: body extraction, templating and partial discovery."""
from .compiler import (
    TEMPLATE_COMPILERS,
    build_compile_context,
    build_output_metadata,
    compile_document,
    prefers_templating,
)
from .partials import PartialsCache, discover_partials, find_project_root
from .templating import TemplateRenderer, build_template_context

__all__ = [
    "TEMPLATE_COMPILERS",
    "build_compile_context",
    "build_output_metadata",
    "compile_document",
    "prefers_templating",
    "PartialsCache",
    "discover_partials",
    "find_project_root",
    "TemplateRenderer",
    "build_template_context",
]
