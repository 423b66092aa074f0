"""Pydantic models for the release records written to the feeds.

A Release is built once by the normalizer and never modified afterwards.
Buckets reorder or drop releases but do not touch their fields, so the
model is frozen.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

# Fixed width, so string order is chronological order
RELEASE_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$"

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class App(StrEnum):
    """Applications whose deployment tags are collected.

    Declaration order is the merge order of the feed.
    """

    WALLET = "Wallet"
    HUB = "Hub"
    KEYGUARD = "Keyguard"


class Environment(StrEnum):
    """Deployment environment a release belongs to.

    MAIN: Production (mainnet) deployment
    TEST: Test network deployment
    """

    MAIN = "main"
    TEST = "test"


# ---------------------------------------------------------------------------
# Release Record
# ---------------------------------------------------------------------------


class Release(BaseModel):
    """A single normalized release.

    Attributes:
        app: Application the tag was fetched for
        version: Version segment of the tag name (e.g., "v1.2.3"), if any
        date: Authored date of the tagged commit, ISO-8601 in UTC
        message: Commit message with blank and "Nimiq" lines removed
        env: Deployment environment inferred from the tag name
    """

    model_config = ConfigDict(frozen=True)

    app: App = Field(..., description="Owning application")
    version: str | None = Field(None, description="Version token from the tag name")
    date: str = Field(
        ...,
        pattern=RELEASE_DATE_PATTERN,
        description="Authored timestamp, e.g. 2024-01-15T10:00:00.000Z",
    )
    message: str = Field("", description="Cleaned commit message")
    env: Environment = Field(..., description="main or test")


ReleaseList = TypeAdapter(list[Release])


def dump_releases(releases: list[Release], indent: int | None = None) -> bytes:
    """Serialize releases as a bare JSON array.

    An absent version is left out of the object instead of being written
    as null.
    """
    return ReleaseList.dump_json(releases, indent=indent, exclude_none=True)
