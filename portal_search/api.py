"""
FastAPI application for portal search.

- ``GET /search?q=<text>&locale=<code>&limit=<n>`` returns the grouped
  search response (camelCase JSON)
- short or empty ``q`` is a normal 200 with empty groups
- a content provider failure surfaces as 503 "Search unavailable"
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config import DATA_SOURCE, DEFAULT_LOCALE, MAX_LIMIT_PER_TYPE
from .models import HealthResponse, SearchOptions, SearchResponse
from .providers import ContentProviderError
from .search import PortalSearch

app = FastAPI(title="Portal Search")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

_engine: Optional[PortalSearch] = None


def get_engine() -> PortalSearch:
    global _engine
    if _engine is None:
        _engine = PortalSearch.from_config()
    return _engine


@app.on_event("startup")
def startup_event() -> None:
    logger.info("Starting portal search (data source: {})", DATA_SOURCE)
    get_engine()
    logger.info("Startup complete; documents are built on first search per locale.")


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="healthy")


@app.get("/search", response_model=SearchResponse)
async def search(
    q: str = "",
    locale: str = DEFAULT_LOCALE,
    limit: Optional[int] = Query(None, ge=1, le=MAX_LIMIT_PER_TYPE),
    engine: PortalSearch = Depends(get_engine),
) -> SearchResponse:
    locale = locale.strip().lower() or DEFAULT_LOCALE
    options = SearchOptions() if limit is None else SearchOptions(limit_per_type=limit)
    try:
        return await engine.search_portal(q, locale, options)
    except ContentProviderError as e:
        logger.warning("Search unavailable for locale={}: {}", locale, e)
        raise HTTPException(status_code=503, detail="Search unavailable") from e


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("portal_search.api:app", host="0.0.0.0", port=8000)
