"""Marginalia: extended Markdown with sidenotes and citations, rendered to Tufte-style HTML."""

from .citations import BibEntry, CitationStyle, Library, parse_bibtex
from .rendering import generate_full_html, parse_inline, parse_markdown

__version__ = "0.1.0"

__all__ = [
    "BibEntry",
    "CitationStyle",
    "Library",
    "generate_full_html",
    "parse_bibtex",
    "parse_inline",
    "parse_markdown",
]
