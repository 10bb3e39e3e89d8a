"""
HTTP API for the research paper summarizer.

This module defines a small, read-only FastAPI application that exposes
the ``papers`` table the way a hosted database exposes its tables over
REST.  Other tools can list and read papers without going through the
Streamlit page.  Papers are created and deleted only from the page, so
the API has no write endpoints.

Endpoints:

* **GET /health** – Return a basic health status.  Intended for
  monitoring and readiness checks.

* **GET /papers** – Return all papers, newest first.  An optional
  ``limit`` query parameter (at least 1) truncates the list.

* **GET /papers/{paper_id}** – Return one paper including its full
  text.  Unknown identifiers yield a 404.

* **GET /stats** – Return the total paper count and uploads per day.

Cross-origin requests are only accepted from the Streamlit UI's origin
(``UI_ORIGIN``, default ``http://localhost:8000``) and only for GET.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .database import PaperStore
from .errors import StoreError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_UI_ORIGIN = "http://localhost:8000"


def allowed_origins() -> List[str]:
    """Origins allowed to call the API from a browser, from ``UI_ORIGIN``."""
    raw = os.getenv("UI_ORIGIN", DEFAULT_UI_ORIGIN)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(title="Research Paper Summarizer API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins(),
    allow_methods=["GET"],
    allow_headers=["*"],
)


@lru_cache(maxsize=None)
def get_store() -> PaperStore:
    """Return the process-wide paper store, creating the schema once."""
    store = PaperStore()
    store.init_db()
    return store


@app.get("/health", response_model=Dict[str, Any])
async def health_check() -> Dict[str, Any]:
    """Return a basic health status."""
    return {
        "status": "healthy",
        "server": "PaperSummarizerAPI",
    }


@app.get("/papers", response_model=Dict[str, Any])
def list_papers(
    limit: Optional[int] = Query(None, ge=1),
    store: PaperStore = Depends(get_store),
) -> Dict[str, Any]:
    """List stored papers, most recent first.

    The full text is omitted from list entries; fetch a single paper to
    read it.
    """
    try:
        papers = store.list_papers()
    except StoreError as e:
        logger.error(f"Error listing papers: {e}")
        raise HTTPException(status_code=500, detail="Failed to list papers")
    if limit is not None:
        papers = papers[:limit]
    results = []
    for paper in papers:
        entry = paper.to_dict()
        entry.pop("full_text")
        results.append(entry)
    return {"results": results}


@app.get("/papers/{paper_id}", response_model=Dict[str, Any])
def fetch_paper(paper_id: str, store: PaperStore = Depends(get_store)) -> Dict[str, Any]:
    """Retrieve the full details for a single paper."""
    try:
        paper = store.fetch_paper(paper_id)
    except StoreError as e:
        logger.error(f"Error fetching paper {paper_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch paper")
    if paper is None:
        raise HTTPException(status_code=404, detail="Paper not found")
    return paper.to_dict()


@app.get("/stats", response_model=Dict[str, Any])
def library_stats(store: PaperStore = Depends(get_store)) -> Dict[str, Any]:
    """Return summary statistics about the paper library."""
    try:
        return store.get_library_stats()
    except StoreError as e:
        logger.error(f"Error computing library stats: {e}")
        raise HTTPException(status_code=500, detail="Failed to compute library stats")


def run(host: str = DEFAULT_HOST, port: int = 8001) -> None:
    """Serve the API with uvicorn.

    Binds to the loopback interface unless ``host`` says otherwise.
    """
    import uvicorn  # type: ignore

    logger.info(f"Starting API server on {host}:{port}")
    uvicorn.run(
        "paper_summarizer.backend.api_server:app",
        host=host,
        port=port,
        log_level="info",
        reload=False,
    )
