"""Long-lived citation state owned by the caller: bibliography, style, URL history."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from .bibtex import BibEntry, parse_bibtex
from .formatting import first_author_last_name


URL_HISTORY_LIMIT = 50
SEARCH_LIMIT = 8
PREVIEW_TITLE_LIMIT = 50


class CitationStyle(str, Enum):
    NUMBERED = "numbered"
    APA = "apa"

    @classmethod
    def parse(cls, value: Union[str, "CitationStyle"]) -> "CitationStyle":
        if isinstance(value, cls):
            return value
        normalized = (value or "").strip().lower()
        for style in cls:
            if style.value == normalized:
                return style
        raise ValueError(f"Unsupported citation style: {value!r}")


@dataclass
class UrlRecord:
    url: str
    name: str = ""


class UrlHistory:
    """Capped, insertion-ordered list of cited URLs used for autocomplete."""

    def __init__(self, records: Optional[Iterable[UrlRecord]] = None, *, limit: int = URL_HISTORY_LIMIT) -> None:
        self.limit = limit
        self._records: List[UrlRecord] = []
        for record in records or ():
            self.remember(record.url, record.name)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(list(self._records))

    def remember(self, url: str, name: Optional[str] = None) -> None:
        for record in self._records:
            if record.url == url:
                if name:
                    record.name = name
                return
        self._records.append(UrlRecord(url=url, name=name or ""))
        while len(self._records) > self.limit:
            self._records.pop(0)

    def search(self, query: Optional[str] = None, limit: int = SEARCH_LIMIT) -> List[UrlRecord]:
        needle = (query or "").lower()
        matches = [
            record
            for record in self._records
            if not needle or needle in record.url.lower() or needle in record.name.lower()
        ]
        return matches[:limit]


class Library:
    """Bibliography store plus the session-wide citation style.

    Keys are matched case-insensitively; loading a bibliography merges into the
    existing store and a repeated key overwrites the older entry.
    """

    def __init__(
        self,
        entries: Optional[Iterable[BibEntry]] = None,
        *,
        style: Union[str, CitationStyle] = CitationStyle.NUMBERED,
        url_history: Optional[UrlHistory] = None,
    ) -> None:
        self._entries: Dict[str, BibEntry] = {}
        self._style = CitationStyle.parse(style)
        self.url_history = url_history if url_history is not None else UrlHistory()
        if entries:
            self.add_entries(entries)

    @property
    def style(self) -> CitationStyle:
        return self._style

    @style.setter
    def style(self, value: Union[str, CitationStyle]) -> None:
        self._style = CitationStyle.parse(value)

    def set_style(self, value: Union[str, CitationStyle]) -> CitationStyle:
        self.style = value
        return self._style

    @property
    def bibliography_count(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key.lower() in self._entries

    def entries(self) -> List[BibEntry]:
        return list(self._entries.values())

    def get(self, key: str) -> Optional[BibEntry]:
        return self._entries.get(key.lower())

    def add_entries(self, entries: Iterable[BibEntry]) -> int:
        count = 0
        for entry in entries:
            self._entries[entry.lookup_key] = entry
            count += 1
        return count

    def load_bibliography(self, text: str) -> int:
        parsed = parse_bibtex(text)
        self.add_entries(parsed.values())
        return len(parsed)

    def clear_bibliography(self) -> None:
        self._entries.clear()

    def search_entries(self, query: Optional[str] = None, limit: int = SEARCH_LIMIT) -> List[Dict[str, str]]:
        needle = (query or "").lower()
        results: List[Dict[str, str]] = []
        for key, entry in self._entries.items():
            if needle and not (
                needle in key
                or needle in entry.author.lower()
                or needle in entry.title.lower()
                or needle in entry.year
            ):
                continue
            results.append({"key": key, "preview": _entry_preview(entry)})
            if len(results) >= limit:
                break
        return results


def _entry_preview(entry: BibEntry) -> str:
    preview: List[str] = []
    if entry.author:
        preview.append(first_author_last_name(entry.author))
    if entry.year:
        preview.append(entry.year)
    if entry.title:
        title = entry.title
        if len(title) > PREVIEW_TITLE_LIMIT:
            title = title[:PREVIEW_TITLE_LIMIT] + "..."
        preview.append(title)
    return " — ".join(preview)


__all__ = ["CitationStyle", "Library", "UrlHistory", "UrlRecord", "URL_HISTORY_LIMIT"]
