"""Reference formatting for the numbered and APA citation styles."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List

from marginalia.utils.html import escape_attr, escape_html

if TYPE_CHECKING:  # pragma: no cover - type checking helper
    from .bibtex import BibEntry
    from .library import CitationStyle


AUTHOR_SEPARATOR = re.compile(r"\s+and\s+", re.IGNORECASE)
SENTENCE_ENDINGS = (".", "?", "!")
DOI_RESOLVER = "https://doi.org/"


def clean_field(value: str) -> str:
    # TeX grouping braces only protect capitalisation; they are not displayed
    return " ".join(value.replace("{", "").replace("}", "").split())


def split_authors(author: str) -> List[str]:
    if not author:
        return []
    return [name.strip() for name in AUTHOR_SEPARATOR.split(clean_field(author)) if name.strip()]


def _join_names(names: List[str], *, serial_comma: bool = False) -> str:
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    glue = ", & " if serial_comma else " & "
    if len(names) == 2:
        return names[0] + glue + names[1]
    return ", ".join(names[:-1]) + glue + names[-1]


def normalize_authors(author: str) -> str:
    """``"Last, First"`` and ``"First Last"`` both become ``"First Last"``."""

    names: List[str] = []
    for name in split_authors(author):
        if "," in name:
            last, _, first = name.partition(",")
            first = first.strip()
            last = last.strip()
            names.append(f"{first} {last}" if first else last)
        else:
            names.append(name)
    return _join_names(names)


def _initials(given: str) -> str:
    return " ".join(part[0] + "." for part in given.split() if part)


def format_apa_authors(author: str) -> str:
    """Render authors as ``"Last, F. M."`` joined APA-style."""

    names: List[str] = []
    for name in split_authors(author):
        if "," in name:
            last, _, given = name.partition(",")
            last = last.strip()
            initials = _initials(given.strip())
        else:
            parts = name.split()
            if len(parts) == 1:
                names.append(name)
                continue
            last = parts[-1]
            initials = _initials(" ".join(parts[:-1]))
        names.append(f"{last}, {initials}" if initials else last)
    return _join_names(names, serial_comma=True)


def first_author_last_name(author: str) -> str:
    names = split_authors(author)
    if not names:
        return "Unknown"
    first = names[0]
    if "," in first:
        return first.split(",")[0].strip() or "Unknown"
    return first.split()[-1]


def _terminate(text: str) -> str:
    if text.endswith(SENTENCE_ENDINGS):
        return text
    return text + "."


def _doi_href(doi: str) -> str:
    if doi.startswith(("http://", "https://")):
        return doi
    return DOI_RESOLVER + doi


def format_reference_text(entry: "BibEntry") -> str:
    """Plain one-line reference, used as the tooltip of inline citations."""

    parts: List[str] = []
    if entry.author:
        parts.append(normalize_authors(entry.author))
    if entry.year:
        parts.append(f"({clean_field(entry.year)})")
    for value in (entry.title, entry.journal, entry.publisher):
        if value:
            parts.append(clean_field(value))
    if entry.volume:
        volume = clean_field(entry.volume)
        if entry.pages:
            volume += ", " + clean_field(entry.pages)
        parts.append(volume)
    elif entry.pages:
        parts.append(clean_field(entry.pages))
    return " ".join(_terminate(part) for part in parts if part)


def format_numbered_reference(entry: "BibEntry") -> str:
    """``Author, "Title," Journal, vol. V, pp. P, Year, doi.``"""

    parts: List[str] = []
    title_index = -1
    if entry.author:
        parts.append(escape_html(normalize_authors(entry.author)))
    if entry.title:
        title_index = len(parts)
        parts.append(escape_html(clean_field(entry.title)))
    if entry.journal:
        parts.append(f"<em>{escape_html(clean_field(entry.journal))}</em>")
    if entry.publisher:
        parts.append(escape_html(clean_field(entry.publisher)))
    if entry.volume:
        volume = "vol. " + escape_html(clean_field(entry.volume))
        if entry.pages:
            volume += ", pp. " + escape_html(clean_field(entry.pages))
        parts.append(volume)
    elif entry.pages:
        parts.append("pp. " + escape_html(clean_field(entry.pages)))
    if entry.year:
        parts.append(escape_html(clean_field(entry.year)))
    if entry.doi:
        parts.append(f'<a href="{escape_attr(_doi_href(entry.doi))}">doi:{escape_html(entry.doi)}</a>')
    elif entry.url:
        parts.append(f'<a href="{escape_attr(entry.url)}">{escape_html(entry.url)}</a>')

    if not parts:
        return ""

    pieces: List[str] = []
    for index, part in enumerate(parts):
        if index == title_index:
            if pieces:
                pieces.append(", ")
            if index == len(parts) - 1:
                pieces.append(f'"{_terminate(part)}"')
            elif part.endswith(SENTENCE_ENDINGS):
                pieces.append(f'"{part}"')
            else:
                pieces.append(f'"{part},"')
            continue
        if pieces:
            pieces.append(" " if index - 1 == title_index else ", ")
        pieces.append(part)
    reference = "".join(pieces)
    if title_index == len(parts) - 1:
        return reference
    return _terminate(reference)


def format_apa_reference(entry: "BibEntry") -> str:
    """``Author (Year). Title. Journal, Volume, Pages.`` plus an optional link."""

    sentences: List[str] = []
    authors = escape_html(format_apa_authors(entry.author)) if entry.author else ""
    year = f"({escape_html(clean_field(entry.year))})" if entry.year else ""
    if authors and year:
        sentences.append(_terminate(f"{authors} {year}"))
    elif authors or year:
        sentences.append(_terminate(authors or year))
    if entry.title:
        sentences.append(_terminate(escape_html(clean_field(entry.title))))
    if entry.journal:
        source = f"<em>{escape_html(clean_field(entry.journal))}</em>"
        if entry.volume:
            source += f", <em>{escape_html(clean_field(entry.volume))}</em>"
        if entry.pages:
            source += f", {escape_html(clean_field(entry.pages))}"
        sentences.append(_terminate(source))
    elif entry.publisher:
        sentences.append(_terminate(escape_html(clean_field(entry.publisher))))

    if entry.doi:
        href = _doi_href(entry.doi)
        sentences.append(f'<a href="{escape_attr(href)}">{escape_html(href)}</a>')
    elif entry.url:
        sentences.append(f'<a href="{escape_attr(entry.url)}">{escape_html(entry.url)}</a>')
    return " ".join(sentences)


def format_reference_html(entry: "BibEntry", style: "CitationStyle") -> str:
    from .library import CitationStyle

    if style is CitationStyle.APA:
        return format_apa_reference(entry)
    return format_numbered_reference(entry)


__all__ = [
    "clean_field",
    "first_author_last_name",
    "format_apa_authors",
    "format_apa_reference",
    "format_numbered_reference",
    "format_reference_html",
    "format_reference_text",
    "normalize_authors",
    "split_authors",
]
