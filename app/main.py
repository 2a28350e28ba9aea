"""
Catalog Draw - Main FastAPI Application
Collects unique random records from the upstream catalog through a two-tier cache
"""
import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from app.collector import CollectionBusyError, CollectionSession, get_collection_session
from app.schemas import (
    CacheCleanupOut,
    CacheStatsOut,
    CollectionStateOut,
    FetchMoreOut,
)
from config.settings import settings

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger("main")

# Version tracking
APP_VERSION = "v0.1.0"
APP_NAME = "Catalog Draw"

app = FastAPI(
    title=APP_NAME,
    description="Unique random records from the upstream catalog",
    version=APP_VERSION
)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "upstream": settings.catalog_base_url}


@app.get("/version")
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "full": f"{APP_NAME} {APP_VERSION}"
    }


@app.get("/collection", response_model=CollectionStateOut)
def collection_state(session: CollectionSession = Depends(get_collection_session)):
    """Current records, loading flag, last error and progress."""
    return session.state.to_dict()


@app.post("/collection/refetch", response_model=CollectionStateOut)
async def refetch_collection(
    wait: bool = Query(True, description="Wait for the run to settle"),
    session: CollectionSession = Depends(get_collection_session),
):
    """
    Start a fresh collection run, cancelling any run in flight.

    With wait=false the run continues in the background and the response
    reflects the loading state.
    """
    if not wait:
        session.start()
        return session.state.to_dict()

    state = await session.refetch()
    if state.error:
        raise HTTPException(status_code=500, detail=state.error)
    return state.to_dict()


@app.post("/collection/more", response_model=FetchMoreOut)
async def fetch_more(
    count: Optional[int] = Query(None, ge=1, le=100, description="Records to add (default: target count)"),
    session: CollectionSession = Depends(get_collection_session),
):
    """Append new unique records to the current collection."""
    try:
        new_records = await session.fetch_more(count)
    except CollectionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"fetch_more failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"added": len(new_records), "records": [r.to_dict() for r in new_records]}


@app.post("/collection/cancel")
async def cancel_collection(session: CollectionSession = Depends(get_collection_session)):
    """Cancel the in-flight collection run."""
    return {"cancelled": session.cancel()}


@app.get("/cache/stats", response_model=CacheStatsOut)
def cache_stats(session: CollectionSession = Depends(get_collection_session)):
    """Get cache statistics."""
    return session.cache_stats().to_dict()


@app.delete("/cache", response_model=CacheCleanupOut)
def clear_cache(session: CollectionSession = Depends(get_collection_session)):
    """Empty both cache tiers."""
    return {"removed": session.clear_cache()}


@app.post("/cache/clean-expired", response_model=CacheCleanupOut)
def clean_expired_cache(session: CollectionSession = Depends(get_collection_session)):
    """Remove expired entries from both cache tiers."""
    return {"removed": session.clean_expired_cache()}
