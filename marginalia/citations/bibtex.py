"""Best-effort BibTeX reader used to fill the citation library.

The reader never raises on malformed input.  Entries are located by scanning
for ``@type{...}`` with a brace-depth counter, and each entry body is then
walked by a small state machine that understands braced, quoted and bare
field values.  Anything it cannot make sense of is skipped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


LOGGER = logging.getLogger(__name__)

NON_CITABLE_TYPES = frozenset({"string", "preamble", "comment"})

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][\w-]*$")


@dataclass(frozen=True)
class BibEntry:
    """One parsed bibliography record."""

    key: str
    entry_type: str = "misc"
    fields: Dict[str, str] = field(default_factory=dict)

    @property
    def lookup_key(self) -> str:
        return self.key.lower()

    def get(self, name: str, default: str = "") -> str:
        return self.fields.get(name.lower(), default)

    @property
    def author(self) -> str:
        return self.get("author")

    @property
    def title(self) -> str:
        return self.get("title")

    @property
    def year(self) -> str:
        return self.get("year")

    @property
    def journal(self) -> str:
        return self.get("journal")

    @property
    def volume(self) -> str:
        return self.get("volume")

    @property
    def pages(self) -> str:
        return self.get("pages")

    @property
    def publisher(self) -> str:
        return self.get("publisher")

    @property
    def doi(self) -> str:
        return self.get("doi")

    @property
    def url(self) -> str:
        return self.get("url")


class ScanState(Enum):
    SCAN_KEY = "key"
    SCAN_FIELD_NAME = "field_name"
    SCAN_VALUE_BRACED = "value_braced"
    SCAN_VALUE_QUOTED = "value_quoted"
    SCAN_VALUE_BARE = "value_bare"


def parse_bibtex(text: str) -> Dict[str, BibEntry]:
    """Parse raw ``.bib`` text into entries keyed by lowercased citation key."""

    entries: Dict[str, BibEntry] = {}
    if not text:
        return entries

    length = len(text)
    i = 0
    while i < length:
        at_idx = text.find("@", i)
        if at_idx == -1:
            break
        i = at_idx + 1

        type_start = i
        while i < length and text[i].isalpha():
            i += 1
        entry_type = text[type_start:i].lower()

        while i < length and text[i].isspace():
            i += 1
        if i >= length or text[i] != "{":
            continue
        i += 1

        body_start = i
        depth = 1
        while i < length:
            char = text[i]
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    break
            i += 1
        if depth != 0:
            LOGGER.debug("Unbalanced braces in @%s entry at offset %d; stopping", entry_type, at_idx)
            break

        body = text[body_start:i]
        i += 1

        if entry_type in NON_CITABLE_TYPES:
            continue

        entry = parse_entry_body(body, entry_type or "misc")
        if entry is None:
            LOGGER.debug("Skipping @%s entry without a citation key at offset %d", entry_type, at_idx)
            continue
        entries[entry.lookup_key] = entry

    return entries


def parse_entry_body(body: str, entry_type: str = "misc") -> Optional[BibEntry]:
    """Walk the text between an entry's outer braces.

    The first comma-delimited token is the key; the rest are ``name = value``
    pairs.  Returns ``None`` when no key is present.
    """

    state = ScanState.SCAN_KEY
    key_chars: List[str] = []
    name_chars: List[str] = []
    value_chars: List[str] = []
    field_name: Optional[str] = None
    fields: Dict[str, str] = {}
    depth = 0

    def commit() -> None:
        value = " ".join("".join(value_chars).split())
        value_chars.clear()
        if field_name:
            fields[field_name] = value

    length = len(body)
    i = 0
    while i < length:
        char = body[i]

        if state is ScanState.SCAN_KEY:
            if char == ",":
                state = ScanState.SCAN_FIELD_NAME
            else:
                key_chars.append(char)
            i += 1
            continue

        if state is ScanState.SCAN_FIELD_NAME:
            if char == "=":
                raw_name = "".join(name_chars).strip()
                name_chars.clear()
                if FIELD_NAME_PATTERN.match(raw_name):
                    field_name = raw_name.lower()
                else:
                    LOGGER.debug("Ignoring value of malformed field name %r", raw_name)
                    field_name = None
                i += 1
                while i < length and body[i].isspace():
                    i += 1
                if i >= length:
                    break
                opener = body[i]
                if opener == "{":
                    state = ScanState.SCAN_VALUE_BRACED
                    depth = 1
                    i += 1
                elif opener == '"':
                    state = ScanState.SCAN_VALUE_QUOTED
                    i += 1
                else:
                    state = ScanState.SCAN_VALUE_BARE
                continue
            if char == ",":
                fragment = "".join(name_chars).strip()
                if fragment:
                    LOGGER.debug("Skipping unparseable fragment %r", fragment)
                name_chars.clear()
            else:
                name_chars.append(char)
            i += 1
            continue

        if state is ScanState.SCAN_VALUE_BRACED:
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    commit()
                    state = ScanState.SCAN_FIELD_NAME
                    i += 1
                    continue
            value_chars.append(char)
            i += 1
            continue

        if state is ScanState.SCAN_VALUE_QUOTED:
            if char == '"':
                commit()
                state = ScanState.SCAN_FIELD_NAME
            else:
                value_chars.append(char)
            i += 1
            continue

        # SCAN_VALUE_BARE: delimiter is left for SCAN_FIELD_NAME to consume
        if char == "," or char == "}" or char.isspace():
            commit()
            state = ScanState.SCAN_FIELD_NAME
            continue
        value_chars.append(char)
        i += 1

    if state in (ScanState.SCAN_VALUE_BARE, ScanState.SCAN_VALUE_QUOTED) and value_chars:
        commit()

    key = "".join(key_chars).strip()
    if not key:
        return None
    return BibEntry(key=key, entry_type=entry_type, fields=fields)


__all__ = ["BibEntry", "NON_CITABLE_TYPES", "ScanState", "parse_bibtex", "parse_entry_body"]
