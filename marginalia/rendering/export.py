"""Standalone HTML document shell used when exporting."""

from __future__ import annotations

from typing import Optional

from marginalia.utils.html import escape_html


TUFTE_CSS_URL = "https://cdnjs.cloudflare.com/ajax/libs/tufte-css/1.8.0/tufte.min.css"
KATEX_CSS_URL = "https://cdn.jsdelivr.net/npm/katex@0.16.11/dist/katex.min.css"
PRISM_CSS_URL = "https://cdnjs.cloudflare.com/ajax/libs/prism/1.29.0/themes/prism-tomorrow.min.css"

CITATION_CSS = """
a.citation { text-decoration: none; color: inherit; background: none; text-shadow: none; }
a.citation:hover { text-decoration: underline; }
.citation-error { color: #c00; border-bottom: 1px dashed #c00; }
.references { clear: both; border-top: 1px solid #ccc; margin-top: 3rem; padding-top: 1.5rem; width: 55%; }
.references h2 { font-size: 1.4rem; margin-bottom: 1rem; }
.references-list { padding-left: 1.5em; }
.references-list li { margin-bottom: 0.75em; line-height: 1.5; overflow-wrap: anywhere; }
.references-list a { word-break: break-all; background: none; text-shadow: none; text-decoration: underline; }"""


def citation_css() -> str:
    return CITATION_CSS


def generate_full_html(body_html: str, title: Optional[str] = None) -> str:
    """Wrap a rendered body fragment in a complete HTML document."""

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{escape_html(title or "Untitled")}</title>
<link rel="stylesheet" href="{TUFTE_CSS_URL}">
<link rel="stylesheet" href="{KATEX_CSS_URL}">
<link rel="stylesheet" href="{PRISM_CSS_URL}">
<style>body {{ padding: 2rem 0; }} section {{ display: flow-root; }}{citation_css()}</style>
</head>
<body>
<article>
{body_html}
</article>
</body>
</html>"""


__all__ = ["citation_css", "generate_full_html"]
