from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from marginalia.citations import CitationStyle, Library
from marginalia.rendering import generate_full_html, get_render_pipeline


LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render an extended-Markdown document to Tufte-style HTML.",
    )
    parser.add_argument("input", type=Path, help="Markdown file to render")
    parser.add_argument(
        "--bib",
        type=Path,
        action="append",
        default=[],
        help="BibTeX file to load before rendering (may be repeated)",
    )
    parser.add_argument(
        "--style",
        choices=[style.value for style in CitationStyle],
        default=CitationStyle.NUMBERED.value,
        help="Citation style (default: numbered)",
    )
    parser.add_argument(
        "--full",
        action="store_true",
        help="Emit a standalone HTML document instead of a body fragment",
    )
    parser.add_argument("--title", type=str, help="Document title (default: input file name)")
    parser.add_argument("--output", type=Path, help="Write HTML here instead of stdout")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def build_library(bib_paths: Iterable[Path], style: str) -> Library:
    library = Library(style=style)
    for path in bib_paths:
        if not path.exists():
            raise FileNotFoundError(f"Bibliography file not found: {path}")
        count = library.load_bibliography(path.read_text(encoding="utf-8"))
        LOGGER.info("Loaded %d entries from %s", count, path)
    return library


def render_file(
    path: Path,
    library: Library,
    *,
    full: bool = False,
    title: Optional[str] = None,
) -> str:
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")
    result = get_render_pipeline().render(path.read_text(encoding="utf-8"), library)
    LOGGER.info(
        "Rendered %s: %d citations, %d sidenotes, %d margin notes",
        path,
        result.citation_count,
        result.sidenote_count,
        result.margin_note_count,
    )
    if full:
        return generate_full_html(result.html, title or path.stem)
    return result.html


def main(argv: Optional[Iterable[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if not args.verbose else logging.DEBUG,
        format="%(levelname)s %(message)s",
    )
    library = build_library(args.bib, args.style)
    html = render_file(args.input, library, full=args.full, title=args.title)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(html, encoding="utf-8")
        LOGGER.info("Saved HTML to %s", args.output)
    else:
        sys.stdout.write(html)


if __name__ == "__main__":
    main()
