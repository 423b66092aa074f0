"""Orchestrator for building the release feeds.

Pipeline:
1. Fetch each application's tags and normalize them (concurrently)
2. Merge the releases in application order: Wallet, Hub, Keyguard
3. Drop excluded releases and split them into main/test buckets
4. Sort each bucket newest first
5. Write mainnet_releases.json and testnet_releases.json

Each application's fetch-and-normalize step returns an AppResult instead
of raising, so one failure never cancels the other tasks. What happens
to a failed application is decided afterwards by the error policy.
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from release_feed.buckets import Buckets, build_buckets
from release_feed.config import ErrorPolicy, FeedConfig, load_config
from release_feed.errors import ConfigError, MalformedDateError, ReleaseFeedError
from release_feed.logging_config import LOG_LEVELS, get_logger, setup_logging
from release_feed.normalize import to_release
from release_feed.schemas import App, Environment, Release
from release_feed.sources.gitlab import GitLabTagClient, TagFetcherProtocol
from release_feed.writer import write_feeds

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Result Types
# ---------------------------------------------------------------------------


@dataclass
class AppResult:
    """Outcome of fetching and normalizing one application's tags.

    Attributes:
        app: The application
        releases: Normalized releases, in tag order
        error: The failure that stopped this application, if any
        skipped: Number of tags dropped for a malformed date (best-effort only)
    """

    app: App
    releases: list[Release] = field(default_factory=list)
    error: ReleaseFeedError | None = None
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunSummary:
    """What a completed run produced."""

    results: list[AppResult]
    buckets: Buckets
    written: dict[Environment, Path]


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------


class ReleaseAggregator:
    """Builds and writes the release feeds for all applications.

    Usage:
        aggregator = ReleaseAggregator(config=load_config())
        summary = await aggregator.run()
    """

    def __init__(
        self,
        config: FeedConfig,
        fetcher: TagFetcherProtocol | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            config: Resolved configuration
            fetcher: Tag source. Defaults to a GitLabTagClient on config.api_base.
        """
        self.config = config
        self.fetcher = fetcher or GitLabTagClient(config.api_base, timeout=config.timeout)

    async def collect_app(self, app: App) -> AppResult:
        """Fetch and normalize one application's tags."""
        project = self.config.project_for(app)
        logger.info("fetching_tags", app=app.value, project=project)
        try:
            tags = await self.fetcher.get_tags(project, self.config.token_for(app))
        except ReleaseFeedError as exc:
            return AppResult(app=app, error=exc)

        result = AppResult(app=app)
        for tag in tags:
            try:
                result.releases.append(to_release(tag, app))
            except MalformedDateError as exc:
                if self.config.error_policy == ErrorPolicy.FAIL_FAST:
                    return AppResult(app=app, error=exc)
                logger.warning("skipping_malformed_tag", app=app.value, error=str(exc))
                result.skipped += 1

        logger.info(
            "tags_fetched",
            app=app.value,
            count=len(tags),
            releases=len(result.releases),
            skipped=result.skipped,
        )
        return result

    async def collect(self) -> list[AppResult]:
        """Run collect_app for every application concurrently.

        Results come back in App declaration order, not completion order.
        """
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(self.collect_app(app)) for app in App]
        return [task.result() for task in tasks]

    def merge(self, results: Sequence[AppResult]) -> list[Release]:
        """Concatenate the releases of all applications.

        Raises:
            ReleaseFeedError: Under FAIL_FAST, the first application error
        """
        releases: list[Release] = []
        for result in results:
            if result.error is not None:
                if self.config.error_policy == ErrorPolicy.FAIL_FAST:
                    raise result.error
                logger.error("app_skipped", app=result.app.value, error=str(result.error))
                continue
            releases.extend(result.releases)
        return releases

    async def run(self) -> RunSummary:
        """Execute the whole pipeline and write both documents.

        Raises:
            ReleaseFeedError: If the run fails under the configured policy,
                              or an output document cannot be written
        """
        results = await self.collect()
        buckets = build_buckets(self.merge(results))
        written = write_feeds(buckets, self.config.output_dir)

        logger.info("finished", main=len(buckets.main), test=len(buckets.test))
        return RunSummary(results=results, buckets=buckets, written=written)


# ---------------------------------------------------------------------------
# CLI Entry Point
# ---------------------------------------------------------------------------


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Usage:
        release-feed
        release-feed --config feed.yaml --output-dir public --best-effort

    Returns:
        Process exit code: 0 on success, 1 on failure
    """
    parser = argparse.ArgumentParser(description="Build the mainnet/testnet release feeds")
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to a YAML settings file (projects, output_dir, timeout, error_policy)",
    )
    parser.add_argument(
        "--output-dir", "-o",
        default=None,
        help="Directory for mainnet_releases.json and testnet_releases.json",
    )
    parser.add_argument(
        "--best-effort",
        action="store_true",
        help="Skip failed applications and malformed tags instead of aborting",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level (default: LOG_LEVEL env var or INFO)",
    )
    args = parser.parse_args(argv)

    try:
        setup_logging(log_level=args.log_level)
    except ConfigError as exc:
        parser.error(str(exc))

    try:
        config = load_config(args.config)
        updates: dict[str, object] = {}
        if args.output_dir:
            updates["output_dir"] = Path(args.output_dir)
        if args.best_effort:
            updates["error_policy"] = ErrorPolicy.BEST_EFFORT
        if updates:
            config = config.model_copy(update=updates)

        asyncio.run(ReleaseAggregator(config).run())
    except ReleaseFeedError as exc:
        logger.error("run_failed", error=str(exc), error_type=type(exc).__name__)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
