"""Inline rewrite rules applied to the text of a single block.

Rules run in priority order and that order matters. Code and math are parked
behind placeholders first so no later rule can touch them. Link and image
targets are parked next; rules that build ``href``/``src`` restore them before
escaping. Citations are expanded in one combined pass so numbering follows
reading order. Bold runs before italic so ``**`` is never read as two emphasis
markers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from marginalia.citations import Library
from marginalia.utils.html import escape_attr, escape_html

from .context import RenderContext


PLACEHOLDER_PATTERN = re.compile(r"\x00PH(\d+)\x00")

MARGIN_NOTE_GLYPH = "&#8853;"


@dataclass
class InlineState:
    context: RenderContext
    placeholders: List[str] = field(default_factory=list)

    def park(self, html: str) -> str:
        self.placeholders.append(html)
        return f"\x00PH{len(self.placeholders) - 1}\x00"

    def restore(self, text: str) -> str:
        def _replace(match: re.Match[str]) -> str:
            index = int(match.group(1))
            if index < len(self.placeholders):
                return self.placeholders[index]
            return match.group(0)

        return PLACEHOLDER_PATTERN.sub(_replace, text)


def margin_toggle_html(toggle_id: str, label: str, span_class: str, content: str) -> str:
    label_class = "margin-toggle sidenote-number" if not label else "margin-toggle"
    return (
        f'<label class="{label_class}" for="{toggle_id}">{label}</label>'
        f'<input type="checkbox" id="{toggle_id}" class="margin-toggle"/>'
        f'<span class="{span_class}">{content}</span>'
    )


class InlineRule:
    """Base class for all inline rewrite rules."""

    name: str = "base"
    priority: int = 100
    pattern: Optional["re.Pattern[str]"] = None

    def apply(self, text: str, state: InlineState) -> str:
        if self.pattern is None:
            return text
        return self.pattern.sub(lambda match: self.replace(match, state), text)

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        raise NotImplementedError


class CodeSpanRule(InlineRule):
    name = "code_span"
    priority = 10
    pattern = re.compile(r"`([^`]+)`")

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        return state.park(f"<code>{escape_html(match.group(1))}</code>")


class InlineMathRule(InlineRule):
    name = "inline_math"
    priority = 20
    pattern = re.compile(r"\$([^$\n]+?)\$")

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        return state.park(f'<span class="math-inline">{escape_html(match.group(1))}</span>')


class LinkTargetRule(InlineRule):
    """Parks the raw target of ``[..](target)`` so citation markers inside URLs stay literal."""

    name = "link_target"
    priority = 25
    pattern = re.compile(r"\]\(([^)]+)\)")

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        return f"]({state.park(match.group(1))})"


class SidenoteRule(InlineRule):
    name = "sidenote"
    priority = 30
    pattern = re.compile(r"\{sn:([^}]+)\}")

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        toggle_id = state.context.next_sidenote_id()
        return margin_toggle_html(toggle_id, "", "sidenote", match.group(1))


class MarginNoteRule(InlineRule):
    name = "margin_note"
    priority = 40
    pattern = re.compile(r"\{mn:([^}]+)\}")

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        toggle_id = state.context.next_margin_note_id()
        return margin_toggle_html(toggle_id, MARGIN_NOTE_GLYPH, "marginnote", match.group(1))


class NewThoughtRule(InlineRule):
    name = "new_thought"
    priority = 50
    pattern = re.compile(r"\{newthought:([^}]+)\}")

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        return f'<span class="newthought">{match.group(1)}</span>'


class CitationRule(InlineRule):
    """``@url[name][url]``, ``@url[url]`` and ``@key`` in a single left-to-right pass."""

    name = "citation"
    priority = 60
    pattern = re.compile(
        r"@url\[(?P<name>[^\]]*)\]\[(?P<named_url>[^\]]+)\]"
        r"|@url\[(?P<url>[^\]]+)\]"
        r"|(?<!\w)@(?P<key>[A-Za-z][\w:-]*)"
    )

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        tracker = state.context.tracker
        if match.group("named_url") is not None:
            html = tracker.format_inline_url_citation(match.group("named_url"), match.group("name") or "")
        elif match.group("url") is not None:
            html = tracker.format_inline_url_citation(match.group("url"))
        else:
            html = tracker.format_inline_citation(match.group("key"))
        return state.park(html)


class ImageRule(InlineRule):
    name = "image"
    priority = 70
    pattern = re.compile(
        r"!\[(?P<caption>[^\]]*)\](?:\[(?P<size>[^\]]*)\])?\((?P<url>[^)]+)\)"
        r"(?:\{(?P<modifier>margin|fullwidth)\})?"
    )
    SIZE_PATTERN = re.compile(r"\s*(\d+)")

    def _width_style(self, size: Optional[str]) -> str:
        if not size:
            return ""
        match = self.SIZE_PATTERN.match(size)
        if not match:
            return ""
        width = int(match.group(1))
        if width <= 0:
            return ""
        return f' style="width:{width}%"'

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        caption = match.group("caption")
        modifier = match.group("modifier")
        img = (
            f'<img src="{escape_attr(state.restore(match.group("url")))}" alt="{escape_attr(state.restore(caption))}"'
            f'{self._width_style(match.group("size"))}>'
        )

        if modifier == "margin":
            toggle_id = state.context.next_margin_note_id("mn-fig")
            content = img + (f"<br>{caption}" if caption else "")
            return margin_toggle_html(toggle_id, MARGIN_NOTE_GLYPH, "marginnote", content)

        figcaption = f"<figcaption>{caption}</figcaption>" if caption else ""
        if modifier == "fullwidth":
            return f'<figure class="fullwidth">{img}{figcaption}</figure>'
        return f"<figure>{img}{figcaption}</figure>"


class LinkRule(InlineRule):
    name = "link"
    priority = 80
    pattern = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        return f'<a href="{escape_attr(state.restore(match.group(2)))}">{match.group(1)}</a>'


class BoldRule(InlineRule):
    name = "bold"
    priority = 90
    pattern = re.compile(r"\*\*([^*]+)\*\*")

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        return f"<strong>{match.group(1)}</strong>"


class ItalicRule(InlineRule):
    name = "italic"
    priority = 100
    pattern = re.compile(r"\*([^*]+)\*")

    def replace(self, match: re.Match[str], state: InlineState) -> str:
        return f"<em>{match.group(1)}</em>"


class InlineRuleRegistry:
    """Applies rules in ascending priority, then restores parked fragments."""

    def __init__(self, rules: Iterable[InlineRule]) -> None:
        self._rules: List[InlineRule] = sorted(rules, key=lambda rule: (rule.priority, rule.name))

    @property
    def rules(self) -> List[InlineRule]:
        return list(self._rules)

    def apply(self, text: str, context: RenderContext) -> str:
        state = InlineState(context=context)
        for rule in self._rules:
            text = rule.apply(text, state)
        return state.restore(text)


DEFAULT_INLINE_RULES: List[InlineRule] = [
    CodeSpanRule(),
    InlineMathRule(),
    LinkTargetRule(),
    SidenoteRule(),
    MarginNoteRule(),
    NewThoughtRule(),
    CitationRule(),
    ImageRule(),
    LinkRule(),
    BoldRule(),
    ItalicRule(),
]

DEFAULT_INLINE_REGISTRY = InlineRuleRegistry(DEFAULT_INLINE_RULES)


def parse_inline(
    text: str,
    context: Optional[RenderContext] = None,
    *,
    registry: Optional[InlineRuleRegistry] = None,
) -> str:
    """Convert one block's raw text to HTML."""

    if context is None:
        context = RenderContext(Library())
    return (registry or DEFAULT_INLINE_REGISTRY).apply(text, context)


__all__ = [
    "DEFAULT_INLINE_REGISTRY",
    "DEFAULT_INLINE_RULES",
    "InlineRule",
    "InlineRuleRegistry",
    "InlineState",
    "margin_toggle_html",
    "parse_inline",
]
