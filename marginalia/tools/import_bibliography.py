from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from marginalia.database import SessionLocal, init_db
from marginalia.services.library_store import LibraryStore


LOGGER = logging.getLogger(__name__)


def import_files(paths: List[Path], reset: bool = False) -> int:
    missing = [path for path in paths if not path.exists()]
    if missing:
        raise FileNotFoundError(f"Bibliography file not found: {missing[0]}")

    init_db()
    total = 0
    with SessionLocal() as session:
        store = LibraryStore(session)
        if reset:
            store.clear_bibliography()
        for path in paths:
            count = store.import_bibtex(path.read_text(encoding="utf-8"))
            LOGGER.info("%s: %d entries", path, count)
            total += count
        session.commit()
        LOGGER.info("Library now holds %d entries", store.bibliography_count())
    return total


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import BibTeX files into the citation library database.",
    )
    parser.add_argument("files", nargs="+", type=Path, help=".bib files to import")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear the stored bibliography before importing",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if not args.verbose else logging.DEBUG,
        format="%(levelname)s %(message)s",
    )
    import_files(args.files, reset=args.reset)


if __name__ == "__main__":
    main()
