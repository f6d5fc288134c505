from __future__ import annotations

from dataclasses import dataclass, field

from marginalia.citations import CitationTracker, Library


@dataclass
class RenderContext:
    """Mutable state for exactly one document render.

    Built by the render entry point; never reused across renders.
    """

    library: Library
    sidenote_count: int = 0
    margin_note_count: int = 0
    tracker: CitationTracker = field(init=False)

    def __post_init__(self) -> None:
        self.tracker = CitationTracker(self.library)

    def next_sidenote_id(self) -> str:
        self.sidenote_count += 1
        return f"sn-{self.sidenote_count}"

    def next_margin_note_id(self, prefix: str = "mn") -> str:
        self.margin_note_count += 1
        return f"{prefix}-{self.margin_note_count}"
