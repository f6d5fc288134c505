"""Extended-Markdown to Tufte-style HTML rendering."""

from __future__ import annotations

from functools import lru_cache

from .context import RenderContext
from .export import citation_css, generate_full_html
from .inline import parse_inline
from .pipeline import RenderPipeline, RenderResult, parse_markdown


@lru_cache(maxsize=1)
def get_render_pipeline() -> RenderPipeline:
    return RenderPipeline()


__all__ = [
    "RenderContext",
    "RenderPipeline",
    "RenderResult",
    "citation_css",
    "generate_full_html",
    "get_render_pipeline",
    "parse_inline",
    "parse_markdown",
]
