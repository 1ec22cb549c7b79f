"""
Shared fixtures: a source tree and cache directory under tmp_path, settings
pointing at them, and a TestClient for an app built from those settings.
"""

from io import BytesIO
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from webp_proxy.core.cache_store import CacheStore
from webp_proxy.core.config import Settings
from webp_proxy.main import create_app
from webp_proxy.services.transcoder import TranscodePipeline

CLEAR_KEY = "s3cret-test-key"


def image_bytes(fmt: str, size=(100, 100), mode: str = "RGB", color=(200, 40, 40)) -> bytes:
    buf = BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


def write_image(path: Path, fmt: str, **kwargs) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(image_bytes(fmt, **kwargs))
    return path


@pytest.fixture
def source_dir(tmp_path):
    path = tmp_path / "src"
    path.mkdir()
    return path


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def settings(source_dir, cache_dir):
    return Settings(
        _env_file=None,
        SOURCE_ROOT=source_dir,
        CACHE_DIR=cache_dir,
        CACHE_CLEAR_KEY=CLEAR_KEY,
        QUALITY=90,
    )


@pytest.fixture
def store(settings):
    return CacheStore(settings.CACHE_DIR)


@pytest.fixture
def pipeline(settings, store):
    return TranscodePipeline(settings, store)


@pytest.fixture
def client(settings):
    """TestClient with lifespan running, so the cache root exists."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def photo(source_dir):
    """photo.jpg: a valid 100x100 JPEG."""
    return write_image(source_dir / "photo.jpg", "JPEG")
