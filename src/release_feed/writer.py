"""Persist the sorted release buckets as JSON documents.

Each document is a bare JSON array of release objects:
- mainnet_releases.json for the main bucket
- testnet_releases.json for the test bucket

The main document is written first. If the test document then fails,
the main document stays on disk.
"""

from __future__ import annotations

from pathlib import Path

from release_feed.buckets import Buckets
from release_feed.errors import SerializationError
from release_feed.logging_config import get_logger
from release_feed.schemas import Environment, Release, dump_releases

logger = get_logger(__name__)

FEED_FILENAMES: dict[Environment, str] = {
    Environment.MAIN: "mainnet_releases.json",
    Environment.TEST: "testnet_releases.json",
}


def write_feed(path: str | Path, releases: list[Release]) -> Path:
    """Write one release list to ``path``, creating parent directories.

    Raises:
        SerializationError: If the directory or file cannot be written
    """
    output_path = Path(path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(dump_releases(releases))
    except OSError as exc:
        raise SerializationError(output_path, exc.strerror or str(exc)) from exc
    return output_path


def write_feeds(buckets: Buckets, output_dir: str | Path) -> dict[Environment, Path]:
    """Write both buckets into ``output_dir``.

    Returns:
        Environment -> path of the written document
    """
    written: dict[Environment, Path] = {}
    for env, releases in buckets.items():
        path = Path(output_dir) / FEED_FILENAMES[env]
        logger.info("writing_releases", env=env.value, path=str(path), count=len(releases))
        written[env] = write_feed(path, releases)
    return written
