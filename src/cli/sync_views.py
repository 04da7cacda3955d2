# =============================================================================
# src/cli/sync_views.py: View-Count Reconciliation Job
# =============================================================================
#
# Moves live view counts from the volatile counter store into the durable
# post store.  Meant to be scheduled externally (cron, k8s CronJob):
#
#   python -m src.cli.sync_views                 # one pass, then exit
#   python -m src.cli.sync_views --loop          # repeat every 300 s
#   python -m src.cli.sync_views --loop --interval 60
#   inkwell-sync-views                           # console script, one pass
#
# Exit status:
#   0  every snapshotted counter was reconciled (or already up to date)
#   1  at least one record failed; the rest of the pass still ran
#   2  the pass could not run at all (counter snapshot or store unavailable,
#      or REDIS_URL unset, since an in-process counter store starts empty)
#
# In --loop mode the exit status is that of the last completed pass.
# Overlapping runs are safe: each ratchet update is idempotent.
# =============================================================================

"""Standalone CLI for the view-count reconciliation job.

Usage::

    python -m src.cli.sync_views
    python -m src.cli.sync_views --loop --interval 60
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from src.config.settings import Settings
from src.models.post import ReconciliationReport
from src.providers.factory import build_post_store, build_volatile_stores
from src.services.cache_aside import CacheAside
from src.services.cache_invalidator import CacheInvalidator
from src.services.reconciliation import ReconciliationJob
from src.utils.errors import InkwellError
from src.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)

EXIT_OK = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_FATAL = 2


def _exit_code(report: ReconciliationReport) -> int:
    return EXIT_OK if report.ok else EXIT_PARTIAL_FAILURE


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    """Build the job, run one or more passes, release connections."""
    if not app_settings.uses_shared_volatile_store():
        logger.error(
            "reconcile_aborted",
            reason="REDIS_URL is not set; the job cannot see the API's view counters",
        )
        return EXIT_FATAL

    stores = build_volatile_stores(app_settings)
    post_store = build_post_store(app_settings)
    invalidator = CacheInvalidator(
        CacheAside(stores.cache_provider, app_settings.volatile_timeout_seconds),
        stores.counter_store,
        app_settings.volatile_timeout_seconds,
    )
    job = ReconciliationJob(
        counter_store=stores.counter_store,
        post_store=post_store,
        invalidator=invalidator,
        concurrency=app_settings.reconcile_concurrency,
    )

    exit_code = EXIT_OK
    try:
        await post_store.initialize()
        while True:
            try:
                report = await job.run()
                exit_code = _exit_code(report)
            except InkwellError as exc:
                logger.error("reconcile_aborted", error=str(exc))
                exit_code = EXIT_FATAL

            if not args.loop:
                break
            await asyncio.sleep(args.interval)
    except InkwellError as exc:
        logger.error("reconcile_aborted", error=str(exc))
        exit_code = EXIT_FATAL
    finally:
        await stores.aclose()

    return exit_code


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the reconciliation CLI."""
    parser = argparse.ArgumentParser(
        prog="sync_views",
        description="Reconcile live view counts into the durable post store.",
    )
    parser.add_argument(
        "--loop",
        action="store_true",
        help="Keep running passes instead of exiting after one",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Seconds between passes in --loop mode (default: RECONCILE_INTERVAL_SECONDS)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level)

    if args.interval is None:
        args.interval = app_settings.reconcile_interval_seconds
    if args.interval < 1:
        parser.error("--interval must be at least 1 second")

    try:
        return asyncio.run(_run(args, app_settings))
    except KeyboardInterrupt:
        logger.info("reconcile_interrupted")
        return EXIT_OK


def run() -> None:
    """Console-script wrapper: exit with :func:`main`'s status."""
    sys.exit(main())


if __name__ == "__main__":
    run()
