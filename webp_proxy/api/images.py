"""
Image endpoint: every path that isn't an admin route is a source image.
"""

import asyncio
import os
from typing import BinaryIO, Iterator

from fastapi import APIRouter, Request
from fastapi.responses import Response, StreamingResponse

router = APIRouter(tags=["images"])

CHUNK_SIZE = 64 * 1024


def _iter_file(fp: BinaryIO) -> Iterator[bytes]:
    with fp:
        while chunk := fp.read(CHUNK_SIZE):
            yield chunk


@router.api_route("/{resource_path:path}", methods=["GET", "HEAD"])
async def serve_image(resource_path: str, request: Request):
    """
    Serve the WebP rendition of ``resource_path``.

    Decoding, encoding, disk I/O and opening the file to send all run on a
    worker thread, so a cache clear after that point can't pull the file out
    from under the response. ``X-Cache`` tells whether the body came from the
    cache (HIT), was just transcoded (MISS) or is the untouched WebP source
    (PASS).
    """
    pipeline = request.app.state.pipeline
    resolved, fp = await asyncio.to_thread(pipeline.resolve_open, resource_path)
    headers = {
        "X-Cache": resolved.cache_status.value,
        "Content-Length": str(os.fstat(fp.fileno()).st_size),
    }

    if request.method == "HEAD":
        fp.close()
        return Response(media_type=resolved.media_type, headers=headers)

    return StreamingResponse(_iter_file(fp), media_type=resolved.media_type, headers=headers)
