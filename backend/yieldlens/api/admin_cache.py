"""
Admin cache management API endpoints.
"""
import logging
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from yieldlens.core.context import get_cache
from yieldlens.services.cache.cache_service import CacheService

logger = logging.getLogger(__name__)

router = APIRouter()

SOURCE_PREVIEW_SIZE = 5


class CacheStatsResponse(BaseModel):
    total_entries: int
    total_memory_usage: int
    hit_rate: float
    miss_rate: float
    total_hits: int
    total_misses: int
    oldest_entry_at: Optional[datetime] = None
    newest_entry_at: Optional[datetime] = None
    sets: int
    deletes: int
    cleanups: int


class CacheEntryResponse(BaseModel):
    key: str
    source: str
    created_at: datetime
    ttl_seconds: float
    size_bytes: int
    hit_count: int
    last_accessed_at: Optional[datetime] = None
    age_seconds: float
    time_to_expire: float
    expired: bool
    data: Optional[Any] = None


class CacheEntriesResponse(BaseModel):
    entries: List[CacheEntryResponse]
    total: int
    has_more: bool


class CacheSourceResponse(BaseModel):
    source: str
    count: int
    total_size: int
    total_hits: int
    average_age_seconds: float
    entries: List[CacheEntryResponse]


class ClearCacheResponse(BaseModel):
    success: bool
    message: str
    cleared: int


@router.get("/stats", response_model=CacheStatsResponse)
async def get_cache_stats(cache: CacheService = Depends(get_cache)):
    """Cache statistics."""
    return cache.get_stats()


@router.get("/entries", response_model=CacheEntriesResponse)
async def get_cache_entries(
    source: Optional[str] = Query(None, description="Filter by source"),
    search: Optional[str] = Query(None, description="Substring match on key or source"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    include_data: bool = Query(False, description="Include cached payloads"),
    cache: CacheService = Depends(get_cache),
):
    """Paginated cache entries, newest first."""
    entries = cache.get_all_entries(include_data=include_data)

    if source:
        entries = [e for e in entries if e["source"] == source]
    if search:
        needle = search.lower()
        entries = [e for e in entries if needle in e["key"].lower() or needle in e["source"].lower()]

    total = len(entries)
    page = entries[offset:offset + limit]
    return {
        "entries": page,
        "total": total,
        "has_more": offset + limit < total,
    }


@router.get("/sources", response_model=List[CacheSourceResponse])
async def get_cache_sources(cache: CacheService = Depends(get_cache)):
    """Per-source summary with a preview of the newest entries."""
    result = []
    for source, entries in cache.get_entries_by_source(include_data=False).items():
        count = len(entries)
        result.append({
            "source": source,
            "count": count,
            "total_size": sum(e["size_bytes"] for e in entries),
            "total_hits": sum(e["hit_count"] for e in entries),
            "average_age_seconds": sum(e["age_seconds"] for e in entries) / count if count else 0.0,
            "entries": entries[:SOURCE_PREVIEW_SIZE],
        })
    result.sort(key=lambda s: s["count"], reverse=True)
    return result


@router.get("/entry/{key:path}", response_model=CacheEntryResponse)
async def get_cache_entry(key: str, cache: CacheService = Depends(get_cache)):
    """One cache entry with its data."""
    entry = cache.get_entry(key)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Cache entry not found: {key}",
        )
    return entry


@router.delete("/entry/{key:path}", response_model=ClearCacheResponse)
async def delete_cache_entry(key: str, cache: CacheService = Depends(get_cache)):
    """Delete one cache entry."""
    if not cache.delete(key):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Cache entry not found: {key}",
        )
    logger.info(f"Cache entry deleted by admin: {key}")
    return {"success": True, "message": f"Deleted {key}", "cleared": 1}


@router.delete("/clear", response_model=ClearCacheResponse)
async def clear_cache(cache: CacheService = Depends(get_cache)):
    """Clear the whole cache."""
    cleared = cache.clear()
    return {"success": True, "message": f"Cleared {cleared} entries", "cleared": cleared}


@router.delete("/clear/{source}", response_model=ClearCacheResponse)
async def clear_cache_source(source: str, cache: CacheService = Depends(get_cache)):
    """Clear every entry of one source."""
    cleared = cache.clear_by_source(source)
    return {"success": True, "message": f"Cleared {cleared} entries from {source}", "cleared": cleared}
