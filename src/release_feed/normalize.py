"""Tag-to-release normalization.

Turns one raw tag record from the hosting API into a Release:
- version: first "-"-separated segment of the tag name starting with "v"
- date: commit authored date, re-emitted as UTC with millisecond precision
- message: commit message without blank lines and "Nimiq" lines
- env: "test" if the tag name contains "test", otherwise "main"

All functions here are pure.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from release_feed.errors import MalformedDateError
from release_feed.schemas import App, Environment, Release

SKIPPED_LINE_PREFIX = "Nimiq"


def extract_version(name: str) -> str | None:
    """Return the first "-"-separated segment of a tag name starting with "v"."""
    return next((part for part in name.split("-") if part.startswith("v")), None)


def infer_env(name: str) -> Environment:
    """Environment is decided by the tag name alone."""
    return Environment.TEST if "test" in name else Environment.MAIN


def clean_message(message: str) -> str:
    """Drop empty lines and lines starting with "Nimiq", keep the rest in order."""
    lines = message.split("\n")
    return "\n".join(
        line for line in lines if line and not line.startswith(SKIPPED_LINE_PREFIX)
    )


def normalize_date(value: Any, tag: str | None = None) -> str:
    """Re-emit a timestamp as ``YYYY-MM-DDTHH:MM:SS.sssZ`` in UTC.

    Offsets are converted to UTC. A timestamp without an offset is taken
    to already be UTC.

    Args:
        value: The raw authored_date from the tag's commit
        tag: Tag name, only used for the error message

    Returns:
        The canonical ISO-8601 string

    Raises:
        MalformedDateError: If the value is not a parseable timestamp
    """
    if not isinstance(value, str):
        raise MalformedDateError(value, tag)
    try:
        parsed = datetime.fromisoformat(value.strip())
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        parsed = parsed.astimezone(UTC)
    except (ValueError, OverflowError) as exc:
        raise MalformedDateError(value, tag) from exc

    # strftime's %Y is not zero-padded below year 1000 on every platform
    millis = parsed.microsecond // 1000
    return f"{parsed.year:04d}-{parsed:%m-%dT%H:%M:%S}.{millis:03d}Z"


def to_release(tag: Mapping[str, Any], app: App) -> Release:
    """Normalize one raw tag record into a Release.

    Args:
        tag: Raw tag as returned by the hosting API. Only ``name`` and
             ``commit.message`` / ``commit.authored_date`` are read.
        app: Application the tag was fetched for

    Returns:
        The normalized Release

    Raises:
        MalformedDateError: If the commit's authored_date is unparseable
    """
    name = tag.get("name") or ""
    commit = tag.get("commit") or {}

    return Release(
        app=app,
        version=extract_version(name),
        date=normalize_date(commit.get("authored_date"), tag=name),
        message=clean_message(commit.get("message") or ""),
        env=infer_env(name),
    )
