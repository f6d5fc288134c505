import logging
import os
from typing import Annotated, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from marginalia import __version__, library_api
from marginalia.database import get_session, init_db
from marginalia.rendering import generate_full_html, get_render_pipeline
from marginalia.services.library_store import LibraryStore


LOG_LEVEL = os.getenv("MARGINALIA_LOG_LEVEL", "INFO").upper()

logging.getLogger("marginalia").setLevel(LOG_LEVEL)

app = FastAPI(
    title="Marginalia API",
    description="Extended Markdown to Tufte-style HTML with citations",
    version=__version__,
)

app.include_router(library_api.router)


@app.on_event("startup")
def on_startup() -> None:
    init_db()


class RenderRequest(BaseModel):
    markdown: str = Field(default="", description="Raw extended-Markdown source.")


class RenderResponse(BaseModel):
    html: str
    citation_count: int
    sidenote_count: int
    margin_note_count: int


class ExportRequest(BaseModel):
    markdown: str = Field(default="", description="Raw extended-Markdown source.")
    title: Optional[str] = Field(default=None, description="Document title for <title>.")


DbSession = Annotated[Session, Depends(get_session)]


@app.get("/status")
def status_info():
    return {"status": "ok", "version": __version__}


@app.post("/render", response_model=RenderResponse)
def render(payload: RenderRequest, db: DbSession) -> RenderResponse:
    store = LibraryStore(db)
    library = store.load_library()
    result = get_render_pipeline().render(payload.markdown, library)
    if result.url_citations:
        store.save_url_history(library.url_history)
    return RenderResponse(
        html=result.html,
        citation_count=result.citation_count,
        sidenote_count=result.sidenote_count,
        margin_note_count=result.margin_note_count,
    )


@app.post("/export", response_class=HTMLResponse)
def export(payload: ExportRequest, db: DbSession) -> HTMLResponse:
    library = LibraryStore(db).load_library()
    body = get_render_pipeline().render(payload.markdown, library).html
    return HTMLResponse(generate_full_html(body, payload.title))
