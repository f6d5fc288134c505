"""Bibliography parsing, citation numbering and reference formatting."""

from .bibtex import BibEntry, parse_bibtex
from .library import CitationStyle, Library, UrlHistory, UrlRecord
from .tracker import CitationTracker, UrlCitation

__all__ = [
    "BibEntry",
    "CitationStyle",
    "CitationTracker",
    "Library",
    "UrlCitation",
    "UrlHistory",
    "UrlRecord",
    "parse_bibtex",
]
