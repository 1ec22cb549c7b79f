import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .api.cache import router as cache_router
from .api.images import router as images_router
from .core.cache_store import CacheStore
from .core.config import Settings, get_settings
from .core.errors import ImageProxyError
from .services.transcoder import TranscodePipeline

logger = logging.getLogger(__name__)


async def handle_image_proxy_error(request: Request, exc: ImageProxyError) -> PlainTextResponse:
    if exc.status_code >= 500:
        logger.error("[%s] %s: %s (cause: %r)", request.url.path, exc.status_code, exc.message, exc.__cause__)
    else:
        logger.info("[%s] %s: %s", request.url.path, exc.status_code, exc.message)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if settings.uses_default_clear_key:
        logger.warning("[startup] CACHE_CLEAR_KEY is the default value; set it before exposing /clearcache")
    try:
        app.state.cache_store.ensure_root()
    except OSError:
        logger.exception("[startup] error creating cache folder %s", settings.CACHE_DIR)
        raise
    logger.info("[startup] serving %s at quality %d", app.state.pipeline.source_root, settings.QUALITY)
    yield


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    store = CacheStore(settings.CACHE_DIR)

    app = FastAPI(
        title="WebP Proxy",
        description="Serves JPEG/PNG files as cached WebP renditions",
        lifespan=lifespan,
        # every path other than /clearcache is an image path
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.cache_store = store
    app.state.pipeline = TranscodePipeline(settings, store)

    app.add_exception_handler(ImageProxyError, handle_image_proxy_error)

    # Admin routes first; the image route catches every other path
    app.include_router(cache_router)
    app.include_router(images_router)
    return app


app = create_app()
