"""Per-render citation numbering shared by keyed and URL citations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlparse

from marginalia.utils.html import escape_attr, escape_html

from .formatting import clean_field, first_author_last_name, format_reference_html, format_reference_text
from .library import CitationStyle, Library


LOGGER = logging.getLogger(__name__)

URL_IDENTIFIER_PREFIX = "__url__"


@dataclass
class UrlCitation:
    url: str
    name: str
    number: int


def url_hostname(url: str) -> str:
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None
    return hostname or url


class CitationTracker:
    """First-use numbering for one document render.

    A citation's number is one more than the count of distinct identifiers
    cited before it; re-citing returns the same number without advancing.
    """

    def __init__(self, library: Library) -> None:
        self.library = library
        self.reset()

    def reset(self) -> None:
        self._cited: List[str] = []
        self._numbers: Dict[str, int] = {}
        self._counter = 0
        self._url_citations: Dict[str, UrlCitation] = {}

    @property
    def citation_count(self) -> int:
        return self._counter

    @property
    def cited_identifiers(self) -> List[str]:
        return list(self._cited)

    @property
    def url_citations(self) -> List[UrlCitation]:
        return list(self._url_citations.values())

    def _track(self, identifier: str) -> int:
        number = self._numbers.get(identifier)
        if number is not None:
            return number
        self._counter += 1
        self._cited.append(identifier)
        self._numbers[identifier] = self._counter
        return self._counter

    @staticmethod
    def _link(number: int, label: str, title: str) -> str:
        title_attr = f' title="{escape_attr(title)}"' if title else ""
        return f'<a class="citation" href="#ref-{number}"{title_attr}>{label}</a>'

    def format_inline_citation(self, key: str) -> str:
        entry = self.library.get(key)
        if entry is None:
            LOGGER.debug("Unknown citation key %r", key)
            return f'<span class="citation-error">[@{escape_html(key)}]</span>'

        number = self._track(entry.lookup_key)
        tooltip = format_reference_text(entry)
        if self.library.style is CitationStyle.APA:
            last_name = first_author_last_name(entry.author)
            year = clean_field(entry.year) or "n.d."
            return self._link(number, f"({escape_html(last_name)}, {escape_html(year)})", tooltip)
        return self._link(number, f"[{number}]", tooltip)

    def format_inline_url_citation(self, url: str, display_name: Optional[str] = None) -> str:
        name = display_name or ""
        self.library.url_history.remember(url, name)

        number = self._track(URL_IDENTIFIER_PREFIX + url)
        record = self._url_citations.get(url)
        if record is None:
            self._url_citations[url] = UrlCitation(url=url, name=name, number=number)
        elif name:
            record.name = name

        tooltip = name or url
        if self.library.style is CitationStyle.APA:
            label = name or url_hostname(url)
            return self._link(number, f"({escape_html(label)})", tooltip)
        return self._link(number, f"[{number}]", tooltip)

    def render_references_section(self) -> str:
        if not self._cited:
            return ""

        items: List[str] = []
        for number, identifier in enumerate(self._cited, start=1):
            if identifier.startswith(URL_IDENTIFIER_PREFIX):
                url = identifier[len(URL_IDENTIFIER_PREFIX):]
                record = self._url_citations.get(url)
                link = f'<a href="{escape_attr(url)}">{escape_html(url)}</a>'
                if record and record.name:
                    items.append(f'<li id="ref-{number}">{escape_html(record.name)}. {link}</li>')
                else:
                    items.append(f'<li id="ref-{number}">{link}</li>')
                continue
            entry = self.library.get(identifier)
            if entry is not None:
                items.append(f'<li id="ref-{number}">{format_reference_html(entry, self.library.style)}</li>')

        return (
            '<div class="references"><h2>References</h2>'
            f'<ol class="references-list">{"".join(items)}</ol></div>'
        )


__all__ = ["CitationTracker", "UrlCitation", "URL_IDENTIFIER_PREFIX", "url_hostname"]
