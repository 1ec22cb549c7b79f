"""
Failure kinds of the transcode proxy.

Pipeline and cache code raise these and stay HTTP-agnostic; the app installs a
single exception handler that turns them into plain-text responses carrying
``status_code``.
"""

from __future__ import annotations


class ImageProxyError(Exception):
    """Base class: a request-terminal failure with an HTTP status."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidPathError(ImageProxyError):
    """Raised when a request path is empty or escapes the allowed roots."""

    status_code = 400
    message = "Invalid path"


class NotFoundError(ImageProxyError):
    status_code = 404
    message = "File not found"


class ReadError(ImageProxyError):
    status_code = 500
    message = "Error reading file"


class UnsupportedTypeError(ImageProxyError):
    status_code = 400
    message = "Unsupported file type"


class DecodeError(ImageProxyError):
    status_code = 500
    message = "Error processing image"


class CacheDirError(ImageProxyError):
    status_code = 500
    message = "Error creating cache directory"


class CacheCreateError(ImageProxyError):
    status_code = 500
    message = "Error creating cache file"


class EncodeError(ImageProxyError):
    status_code = 500
    message = "Error encoding image"


class ForbiddenError(ImageProxyError):
    status_code = 403
    message = "Invalid cache clear key"


class CacheDeleteError(ImageProxyError):
    status_code = 500
    message = "Error clearing cache"
