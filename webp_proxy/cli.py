"""
Command-line entry point.

Usage:
    webp-proxy --quality 80 --cache ./cache --cachekey s3cret
    webp-proxy --source-root /srv/images --port 9000
"""

import argparse
import logging
from typing import Optional, Sequence

import uvicorn

from .core.config import Settings
from .main import create_app


def _quality(value: str) -> int:
    try:
        quality = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid quality: {value!r}")
    if not 0 <= quality <= 100:
        raise argparse.ArgumentTypeError("quality must be between 0 and 100")
    return quality


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="webp-proxy", description="Serve images as cached WebP")
    parser.add_argument("--quality", type=_quality, help="Quality of the converted images (0-100)")
    parser.add_argument("--cache", help="Folder to cache images")
    parser.add_argument("--cachekey", help="Key to clear cache")
    parser.add_argument("--source-root", help="Directory request paths are resolved under")
    parser.add_argument("--host", help="Bind address")
    parser.add_argument("--port", type=int, help="Bind port")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    return parser


def build_settings(args: argparse.Namespace) -> Settings:
    """Flags given on the command line override environment/.env values."""
    overrides = {
        "QUALITY": args.quality,
        "CACHE_DIR": args.cache,
        "CACHE_CLEAR_KEY": args.cachekey,
        "SOURCE_ROOT": args.source_root,
        "HOST": args.host,
        "PORT": args.port,
        "LOG_LEVEL": args.log_level,
    }
    return Settings(**{name: value for name, value in overrides.items() if value is not None})


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    settings = build_settings(args)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
