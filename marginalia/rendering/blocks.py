"""Block splitting and block-level rules."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from marginalia.utils.html import escape_attr, escape_html

from .context import RenderContext
from .inline import parse_inline


CODE_FENCE = "code"
MATH_FENCE = "math"


@dataclass
class Block:
    """Contiguous source lines plus the 0-based line number of the first one."""

    lines: List[str]
    start_line: int
    kind: Optional[str] = None

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def line_attr(self) -> str:
        return f' data-line="{self.start_line}"'


def _fence_type(line: str) -> Optional[str]:
    if line.startswith("```"):
        return CODE_FENCE
    if line.strip() == "$$":
        return MATH_FENCE
    return None


def split_blocks(text: str) -> List[Block]:
    """Split a document into blank-line separated blocks.

    Fenced code and ``$$`` display math keep their interior blank lines.
    """

    blocks: List[Block] = []
    current: List[str] = []
    current_start = 0
    fence: Optional[str] = None

    def flush() -> None:
        nonlocal current
        if current:
            blocks.append(Block(lines=current, start_line=current_start))
            current = []

    for line_idx, line in enumerate(text.split("\n")):
        fence_type = _fence_type(line)

        if fence is not None:
            current.append(line)
            if fence_type == fence:
                flush()
                fence = None
            continue

        if fence_type is not None:
            flush()
            fence = fence_type
            current_start = line_idx
            current.append(line)
            continue

        if not line.strip():
            flush()
            continue

        if not current:
            current_start = line_idx
        current.append(line)

    flush()
    return blocks


class SectionAction(Enum):
    NONE = "none"
    CONTENT = "content"
    OPEN = "open"


class BlockRule:
    """Base class for block classifiers/renderers."""

    name: str = "base"
    priority: int = 100

    def matches(self, block: Block) -> bool:
        return False

    def section_action(self, block: Block) -> SectionAction:
        return SectionAction.CONTENT

    def render(self, block: Block, context: RenderContext) -> str:
        raise NotImplementedError


class FencedCodeRule(BlockRule):
    name = "code"
    priority = 10

    def matches(self, block: Block) -> bool:
        return block.lines[0].startswith("```")

    def render(self, block: Block, context: RenderContext) -> str:
        lang = block.lines[0][3:].strip()
        body = block.lines[1:]
        if len(block.lines) > 1 and block.lines[-1].startswith("```"):
            body = block.lines[1:-1]
        code = escape_html("\n".join(body))
        lang_attr = f' class="language-{escape_attr(lang)}"' if lang else ""
        return f"<pre{block.line_attr}><code{lang_attr}>{code}</code></pre>"


class DisplayMathRule(BlockRule):
    name = "math"
    priority = 20
    PATTERN = re.compile(r"^\$\$([\s\S]*?)\$\$$")

    def _content(self, block: Block) -> str:
        match = self.PATTERN.match(block.text)
        return match.group(1).strip() if match else ""

    def matches(self, block: Block) -> bool:
        return bool(self._content(block))

    def render(self, block: Block, context: RenderContext) -> str:
        return f'<div class="math-display"{block.line_attr}>{escape_html(self._content(block))}</div>'


class HorizontalRuleRule(BlockRule):
    name = "rule"
    priority = 30
    PATTERN = re.compile(r"^---+$")

    def matches(self, block: Block) -> bool:
        return bool(self.PATTERN.match(block.text.strip()))

    def render(self, block: Block, context: RenderContext) -> str:
        return f"<hr{block.line_attr}/>"


class HeadingRule(BlockRule):
    name = "heading"
    priority = 40
    PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
    SECTION_LEVELS = (2, 3)

    def matches(self, block: Block) -> bool:
        return bool(self.PATTERN.fullmatch(block.text))

    def section_action(self, block: Block) -> SectionAction:
        match = self.PATTERN.fullmatch(block.text)
        if match and len(match.group(1)) in self.SECTION_LEVELS:
            return SectionAction.OPEN
        return SectionAction.NONE

    def render(self, block: Block, context: RenderContext) -> str:
        match = self.PATTERN.fullmatch(block.text)
        level = len(match.group(1))
        return f"<h{level}{block.line_attr}>{parse_inline(match.group(2), context)}</h{level}>"


class BlockquoteRule(BlockRule):
    """Blockquotes; a final ``—``/``--`` line turns the quote into an epigraph."""

    name = "blockquote"
    priority = 50
    PATTERN = re.compile(r"^>\s")
    QUOTE_MARKER = re.compile(r"^>\s?")
    ATTRIBUTION = re.compile(r"^(?:—|--)\s*")

    def matches(self, block: Block) -> bool:
        return bool(self.PATTERN.match(block.text))

    def render(self, block: Block, context: RenderContext) -> str:
        lines = [self.QUOTE_MARKER.sub("", line, count=1) for line in block.lines]
        footer = ""
        if len(lines) > 1 and self.ATTRIBUTION.match(lines[-1]):
            footer = self.ATTRIBUTION.sub("", lines.pop(), count=1)
        quote = parse_inline(" ".join(lines), context)
        if footer:
            return (
                f'<div class="epigraph"{block.line_attr}><blockquote><p>{quote}</p>'
                f"<footer>{parse_inline(footer, context)}</footer></blockquote></div>"
            )
        return f"<blockquote{block.line_attr}><p>{quote}</p></blockquote>"


class ListRule(BlockRule):
    name = "list"
    tag = "ul"
    ITEM = re.compile(r"^[-*]\s+")

    def matches(self, block: Block) -> bool:
        return bool(self.ITEM.match(block.text))

    def render(self, block: Block, context: RenderContext) -> str:
        items = [
            f"<li>{parse_inline(self.ITEM.sub('', line, count=1), context)}</li>"
            for line in block.lines
            if self.ITEM.match(line)
        ]
        return f"<{self.tag}{block.line_attr}>{''.join(items)}</{self.tag}>"


class UnorderedListRule(ListRule):
    name = "unordered_list"
    priority = 60


class OrderedListRule(ListRule):
    name = "ordered_list"
    priority = 70
    tag = "ol"
    ITEM = re.compile(r"^\d+\.\s+")


class ParagraphRule(BlockRule):
    name = "paragraph"
    priority = 1000

    def matches(self, block: Block) -> bool:
        return True

    def render(self, block: Block, context: RenderContext) -> str:
        text = block.text.replace("\n", " ")
        return f"<p{block.line_attr}>{parse_inline(text, context)}</p>"


class BlockRuleRegistry:
    """Selects the first matching rule in priority order."""

    def __init__(self, rules: Iterable[BlockRule]) -> None:
        self._rules: List[BlockRule] = sorted(rules, key=lambda rule: (rule.priority, rule.name))

    def select(self, block: Block) -> BlockRule:
        for rule in self._rules:
            if rule.matches(block):
                return rule
        return self._rules[-1]


DEFAULT_BLOCK_RULES: List[BlockRule] = [
    FencedCodeRule(),
    DisplayMathRule(),
    HorizontalRuleRule(),
    HeadingRule(),
    BlockquoteRule(),
    UnorderedListRule(),
    OrderedListRule(),
    ParagraphRule(),
]


__all__ = [
    "Block",
    "BlockRule",
    "BlockRuleRegistry",
    "DEFAULT_BLOCK_RULES",
    "SectionAction",
    "split_blocks",
]
