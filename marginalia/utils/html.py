from __future__ import annotations

import html
from typing import Optional


def escape_html(value: Optional[str]) -> str:
    """Escape text content (quotes are left alone)."""

    if not value:
        return ""
    return html.escape(str(value), quote=False)


def escape_attr(value: Optional[str]) -> str:
    """Escape a value for use inside a double-quoted attribute."""

    if not value:
        return ""
    return html.escape(str(value), quote=True)
