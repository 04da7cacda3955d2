"""Reconciliation job: ratchet volatile view counts into the durable store.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services (driven by ``src/cli/sync_views.py`` on a schedule).
#
# One pass:
#   1. Snapshot every non-zero counter from the volatile store.
#   2. For each ``(post_id, value)``, with bounded concurrency:
#        UPDATE posts SET views = MAX(views, value) WHERE id = ? AND views < value
#      then, if a row moved, re-seed the counter and drop ``post:{id}``.
#   3. Report scanned / updated / unchanged / failed.
#
# Properties this relies on:
#   - The ratchet never lowers ``views``, so a counter that was lost and
#     re-seeded from an older baseline cannot roll the durable value back.
#   - Counters are never reset or deleted here.  Increments that land
#     during a pass are simply picked up by the next pass.
#   - Each ratchet is independent and idempotent, so overlapping passes
#     (a slow run still going when cron fires again) are harmless.
#
# A per-record failure is logged and counted; the pass continues.  A
# snapshot failure means nothing could be reconciled and propagates.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
import uuid

import structlog

from src.interfaces.counter_store import ICounterStore
from src.interfaces.post_store import IPostStore
from src.models.post import ReconciliationReport
from src.services.cache_invalidator import CacheInvalidator
from src.utils.concurrency import fan_out

logger = structlog.get_logger(logger_name=__name__)


class ReconciliationJob:
    """Moves live view counts into the durable store, one pass per ``run``.

    Parameters
    ----------
    counter_store:
        Source of the live counts.
    post_store:
        Durable store receiving the ratchet updates.
    invalidator:
        Re-aligns volatile state after each committed ratchet.
    concurrency:
        Maximum ratchet updates in flight at once.
    """

    def __init__(
        self,
        counter_store: ICounterStore,
        post_store: IPostStore,
        invalidator: CacheInvalidator,
        concurrency: int = 10,
    ) -> None:
        self._counters = counter_store
        self._posts = post_store
        self._invalidator = invalidator
        self._concurrency = concurrency

    async def run(self) -> ReconciliationReport:
        """Execute one reconciliation pass and return its report."""
        job_run_id = uuid.uuid4().hex[:12]
        started = time.perf_counter()

        with structlog.contextvars.bound_contextvars(job_run_id=job_run_id):
            snapshot = await self._counters.snapshot()
            logger.info("reconcile_started", counters=len(snapshot))

            async def _reconcile_one(post_id: str) -> bool:
                value = snapshot[post_id]
                moved = await self._posts.ratchet_view_count(post_id, value)
                if moved:
                    await self._invalidator.on_view_count_committed(post_id, value)
                return moved

            successes, failures = await fan_out(
                _reconcile_one,
                snapshot,
                limit=self._concurrency,
                logger=logger,
                error_msg="reconcile_record_failed",
            )

            updated = sum(1 for _, moved in successes if moved)
            report = ReconciliationReport(
                job_run_id=job_run_id,
                scanned=len(snapshot),
                updated=updated,
                unchanged=len(successes) - updated,
                failed=len(failures),
                failed_ids=sorted(post_id for post_id, _ in failures),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )

            log = logger.warning if failures else logger.info
            log(
                "reconcile_complete",
                scanned=report.scanned,
                updated=report.updated,
                unchanged=report.unchanged,
                failed=report.failed,
                duration_ms=report.duration_ms,
            )
        return report
