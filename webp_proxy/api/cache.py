"""
Cache administration endpoints.
"""
import asyncio

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse

from ..services.cache_clear import clear_cache

router = APIRouter(tags=["cache"])


@router.get("/clearcache", response_class=PlainTextResponse)
async def clear_cache_endpoint(request: Request, key: str = Query("", description="Cache clear key")):
    settings = request.app.state.settings
    await asyncio.to_thread(clear_cache, request.app.state.cache_store, settings.CACHE_CLEAR_KEY, key)
    return "Cache cleared successfully"
