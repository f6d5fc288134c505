"""Document-level rendering: blocks, sections and the references list."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from marginalia.citations import Library, UrlCitation

from .blocks import DEFAULT_BLOCK_RULES, BlockRule, BlockRuleRegistry, SectionAction, split_blocks
from .context import RenderContext


LOGGER = logging.getLogger(__name__)


@dataclass
class RenderResult:
    html: str
    citation_count: int = 0
    sidenote_count: int = 0
    margin_note_count: int = 0
    url_citations: List[UrlCitation] = field(default_factory=list)


class RenderPipeline:
    """Splits a document into blocks, renders each and stitches the result."""

    def __init__(self, rules: Optional[Iterable[BlockRule]] = None) -> None:
        self.registry = BlockRuleRegistry(list(rules or DEFAULT_BLOCK_RULES))

    def render(self, text: str, library: Optional[Library] = None) -> RenderResult:
        context = RenderContext(library if library is not None else Library())
        blocks = split_blocks(text or "")
        LOGGER.debug("Rendering %d blocks", len(blocks))

        parts: List[str] = []
        section_open = False
        for block in blocks:
            rule = self.registry.select(block)
            block.kind = rule.name
            action = rule.section_action(block)
            if action is SectionAction.OPEN:
                if section_open:
                    parts.append("</section>\n")
                parts.append("<section>\n")
                section_open = True
            elif action is SectionAction.CONTENT and not section_open:
                parts.append("<section>\n")
                section_open = True
            parts.append(rule.render(block, context) + "\n")

        if section_open:
            parts.append("</section>\n")
        parts.append(context.tracker.render_references_section())

        return RenderResult(
            html="".join(parts),
            citation_count=context.tracker.citation_count,
            sidenote_count=context.sidenote_count,
            margin_note_count=context.margin_note_count,
            url_citations=context.tracker.url_citations,
        )


def parse_markdown(text: str, library: Optional[Library] = None) -> str:
    """Render a whole document to an HTML body fragment."""

    from . import get_render_pipeline

    return get_render_pipeline().render(text, library).html


__all__ = ["RenderPipeline", "RenderResult", "parse_markdown"]
