from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from marginalia.citations import BibEntry, CitationStyle, Library, UrlHistory, UrlRecord, parse_bibtex
from marginalia.citations.library import URL_HISTORY_LIMIT
from marginalia.models import BibEntryRecord, Setting, UrlHistoryRecord


LOGGER = logging.getLogger(__name__)

STYLE_SETTING = "citation_style"


class LibraryStore:
    """Persists the citation library between renders."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def load_library(self) -> Library:
        entries = [
            BibEntry(key=row.citation_key, entry_type=row.entry_type, fields=dict(row.fields or {}))
            for row in self.session.execute(select(BibEntryRecord).order_by(BibEntryRecord.id)).scalars()
        ]
        history = UrlHistory(
            UrlRecord(url=row.url, name=row.name or "")
            for row in self.session.execute(
                select(UrlHistoryRecord).order_by(UrlHistoryRecord.position)
            ).scalars()
        )
        return Library(entries, style=self.get_style(), url_history=history)

    def bibliography_count(self) -> int:
        return self.session.execute(select(func.count(BibEntryRecord.id))).scalar_one()

    def import_bibtex(self, text: str) -> int:
        parsed = parse_bibtex(text)
        self.store_entries(parsed.values())
        LOGGER.info("Imported %d bibliography entries", len(parsed))
        return len(parsed)

    def store_entries(self, entries: Iterable[BibEntry]) -> None:
        for entry in entries:
            record = self.session.execute(
                select(BibEntryRecord).where(BibEntryRecord.lookup_key == entry.lookup_key)
            ).scalar_one_or_none()
            if not record:
                record = BibEntryRecord(lookup_key=entry.lookup_key)
                self.session.add(record)
            record.citation_key = entry.key
            record.entry_type = entry.entry_type
            record.fields = dict(entry.fields)
        self.session.flush()

    def clear_bibliography(self) -> int:
        result = self.session.execute(delete(BibEntryRecord))
        LOGGER.info("Cleared %d bibliography entries", result.rowcount or 0)
        return result.rowcount or 0

    def get_style(self) -> CitationStyle:
        value = self.session.execute(
            select(Setting.value).where(Setting.name == STYLE_SETTING)
        ).scalar_one_or_none()
        if not value:
            return CitationStyle.NUMBERED
        try:
            return CitationStyle.parse(value)
        except ValueError:
            LOGGER.warning("Stored citation style %r is not supported; using numbered", value)
            return CitationStyle.NUMBERED

    def set_style(self, value: Union[str, CitationStyle]) -> CitationStyle:
        style = CitationStyle.parse(value)
        setting = self.session.execute(
            select(Setting).where(Setting.name == STYLE_SETTING)
        ).scalar_one_or_none()
        if not setting:
            setting = Setting(name=STYLE_SETTING)
            self.session.add(setting)
        setting.value = style.value
        self.session.flush()
        return style

    def save_url_history(self, history: UrlHistory) -> None:
        records: List[UrlRecord] = list(history)[-URL_HISTORY_LIMIT:]
        existing: Dict[str, UrlHistoryRecord] = {
            row.url: row for row in self.session.execute(select(UrlHistoryRecord)).scalars()
        }
        keep = {record.url for record in records}
        for url, row in existing.items():
            if url not in keep:
                self.session.delete(row)
        for position, record in enumerate(records):
            row: Optional[UrlHistoryRecord] = existing.get(record.url)
            if row is None:
                row = UrlHistoryRecord(url=record.url)
                self.session.add(row)
            row.name = record.name
            row.position = position
        self.session.flush()


__all__ = ["LibraryStore", "STYLE_SETTING"]
