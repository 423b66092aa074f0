"""Error types raised while building the release feeds."""

from __future__ import annotations

from pathlib import Path


class ReleaseFeedError(RuntimeError):
    """Base class for every failure the CLI reports with a non-zero exit."""


class ConfigError(ReleaseFeedError, ValueError):
    """Required configuration is missing or invalid."""


class FetchError(ReleaseFeedError):
    """The hosting API could not deliver the tag list for a project."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class MalformedDateError(ReleaseFeedError, ValueError):
    """A tag's authored date could not be parsed."""

    def __init__(self, value: object, tag: str | None = None) -> None:
        where = f" on tag {tag!r}" if tag else ""
        super().__init__(f"Unparseable authored_date {value!r}{where}")
        self.value = value
        self.tag = tag


class SerializationError(ReleaseFeedError):
    """An output document could not be written."""

    def __init__(self, path: str | Path, message: str) -> None:
        super().__init__(f"Failed to write {path}: {message}")
        self.path = Path(path)
