from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from marginalia.database import get_session
from marginalia.services.library_store import LibraryStore


router = APIRouter(prefix="/library", tags=["library"])


class BibliographyImportRequest(BaseModel):
    bibtex: str = Field(default="", description="Raw BibTeX text; merged into the library.")


class BibliographyImportResponse(BaseModel):
    parsed: int
    total: int


class BibliographyCount(BaseModel):
    total: int


class EntrySearchItem(BaseModel):
    key: str
    preview: str


class StylePayload(BaseModel):
    style: str


class UrlSearchItem(BaseModel):
    url: str
    name: str


@router.get("/bibliography", response_model=BibliographyCount)
def bibliography_count(db: Session = Depends(get_session)) -> BibliographyCount:
    return BibliographyCount(total=LibraryStore(db).bibliography_count())


@router.post("/bibliography", response_model=BibliographyImportResponse)
def import_bibliography(
    payload: BibliographyImportRequest,
    db: Session = Depends(get_session),
) -> BibliographyImportResponse:
    store = LibraryStore(db)
    parsed = store.import_bibtex(payload.bibtex)
    return BibliographyImportResponse(parsed=parsed, total=store.bibliography_count())


@router.delete("/bibliography", response_model=BibliographyCount)
def clear_bibliography(db: Session = Depends(get_session)) -> BibliographyCount:
    store = LibraryStore(db)
    store.clear_bibliography()
    return BibliographyCount(total=0)


@router.get("/bibliography/search", response_model=List[EntrySearchItem])
def search_entries(
    q: Optional[str] = Query(default=None),
    db: Session = Depends(get_session),
) -> List[EntrySearchItem]:
    library = LibraryStore(db).load_library()
    return [EntrySearchItem(**item) for item in library.search_entries(q)]


@router.get("/style", response_model=StylePayload)
def get_style(db: Session = Depends(get_session)) -> StylePayload:
    return StylePayload(style=LibraryStore(db).get_style().value)


@router.put("/style", response_model=StylePayload)
def set_style(payload: StylePayload, db: Session = Depends(get_session)) -> StylePayload:
    try:
        style = LibraryStore(db).set_style(payload.style)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return StylePayload(style=style.value)


@router.get("/urls/search", response_model=List[UrlSearchItem])
def search_urls(
    q: Optional[str] = Query(default=None),
    db: Session = Depends(get_session),
) -> List[UrlSearchItem]:
    library = LibraryStore(db).load_library()
    return [UrlSearchItem(url=record.url, name=record.name) for record in library.url_history.search(q)]


__all__ = ["router"]
