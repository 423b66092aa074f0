"""Classification, filtering and ordering of normalized releases.

Releases arrive merged in application order (Wallet, Hub, Keyguard), each
application's tags in the order the API returned them. From there:
1. Releases carrying the exclusion marker are dropped from both feeds
2. The rest are routed to the main or test bucket by their env
3. Each bucket is sorted newest first

Steps 1-2 never reorder, and step 3 is a stable sort, so releases with
the same date keep their merge order.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from release_feed.schemas import Environment, Release

EXCLUDE_MARKER = "[exclude-release]"


@dataclass
class Buckets:
    """Releases partitioned by deployment environment.

    Attributes:
        main: Production (mainnet) releases
        test: Test network releases
    """

    main: list[Release] = field(default_factory=list)
    test: list[Release] = field(default_factory=list)

    def items(self) -> list[tuple[Environment, list[Release]]]:
        return [(Environment.MAIN, self.main), (Environment.TEST, self.test)]


def is_excluded(release: Release) -> bool:
    """True if the commit message opts the release out of the feeds."""
    return EXCLUDE_MARKER in release.message


def classify(releases: Iterable[Release]) -> Buckets:
    """Drop excluded releases and route the rest by environment.

    Relative order inside each bucket is the input order.
    """
    buckets = Buckets()
    for release in releases:
        if is_excluded(release):
            continue

        if release.env == Environment.TEST:
            buckets.test.append(release)
        else:
            buckets.main.append(release)
    return buckets


def sort_newest_first(bucket: Iterable[Release]) -> list[Release]:
    """Order releases by date, newest first.

    Dates are fixed-width ISO-8601 strings, so string comparison matches
    chronological order. ``sorted`` stays stable with ``reverse=True``.
    """
    return sorted(bucket, key=lambda release: release.date, reverse=True)


def build_buckets(releases: Iterable[Release]) -> Buckets:
    """Classify releases and sort both buckets."""
    buckets = classify(releases)
    return Buckets(
        main=sort_newest_first(buckets.main),
        test=sort_newest_first(buckets.test),
    )
