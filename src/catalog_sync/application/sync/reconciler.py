"""Application sync – SyncReconciler: drains the outbox into the search index."""
from __future__ import annotations

import asyncio
import dataclasses
import zlib
from collections import defaultdict
from datetime import timedelta
from typing import Any

from catalog_sync.application.sync.report import DrainReport
from catalog_sync.kernel.catalog import DriftRecord, ListingStore, SearchIndex
from catalog_sync.kernel.errors import DocumentRejectedError, InfrastructureError, PermanentSyncError, SyncError
from catalog_sync.kernel.messaging import OutboxEvent, OutboxRepository, SyncOperation
from catalog_sync.kernel.time import Clock, SystemClock
from catalog_sync.observability.logging import get_logger
from catalog_sync.resilience.retry import EqualJitter, ExponentialBackoff, RetrySchedule

_log = get_logger(__name__)


def partition_of(listing_id: str, partitions: int) -> int:
    """Stable partition of a listing; all its events land in the same one."""
    return zlib.crc32(listing_id.encode("utf-8")) % partitions


def _sequence_of(event: OutboxEvent) -> int:
    if event.sequence is None:
        raise InfrastructureError(f"Outbox event for listing '{event.listing_id}' has no sequence")
    return event.sequence


@dataclasses.dataclass(frozen=True)
class ReconcilerConfig:
    batch_size: int = 100
    partitions: int = 1
    poll_interval: float = 1.0
    index_timeout: float = 5.0
    drift_sweep_interval: float = 300.0
    drift_sample_size: int = 200
    delivered_retention: float = 86400.0

    @classmethod
    def from_settings(cls, settings: Any) -> ReconcilerConfig:
        return cls(
            batch_size=settings.batch_size,
            partitions=settings.partitions,
            poll_interval=settings.poll_interval_seconds,
            index_timeout=settings.index_timeout_seconds,
            drift_sweep_interval=settings.drift_sweep_interval_seconds,
            drift_sample_size=settings.drift_sample_size,
            delivered_retention=settings.delivered_retention_seconds,
        )


def schedule_from_settings(settings: Any) -> RetrySchedule:
    return RetrySchedule(
        window=timedelta(seconds=settings.retry_window_seconds),
        backoff=ExponentialBackoff(settings.backoff_base_seconds, settings.backoff_max_seconds),
        jitter=EqualJitter(),
    )


class SyncReconciler:
    """Moves committed listing changes from the outbox into the search index.

    A pass claims a batch, splits it by listing into ``partitions`` groups
    and processes the groups concurrently; inside a group events run one at
    a time in sequence order, so a listing's changes reach the index in
    commit order. Index version fencing covers whatever reordering is left
    (a reclaimed lease, a replayed event).

    Failures are retried with backoff until the retry window runs out, then
    the event is parked as ``failed``. Nothing is dropped silently.
    """

    def __init__(
        self,
        outbox: OutboxRepository,
        index: SearchIndex,
        store: ListingStore,
        *,
        config: ReconcilerConfig | None = None,
        schedule: RetrySchedule | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._outbox = outbox
        self._index = index
        self._store = store
        self._config = config or ReconcilerConfig()
        self._schedule = schedule or RetrySchedule()
        self._clock = clock or SystemClock()
        self._sweep_cursor: str | None = None
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def config(self) -> ReconcilerConfig:
        return self._config

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def run_once(self) -> DrainReport:
        """Claim one batch and settle every event in it."""
        events = await self._outbox.fetch_batch(self._config.batch_size)
        report = DrainReport(passes=1, fetched=len(events))
        if not events:
            return report
        groups: dict[int, list[OutboxEvent]] = defaultdict(list)
        for event in events:
            groups[partition_of(event.listing_id, self._config.partitions)].append(event)
        await asyncio.gather(*(self._process_group(group, report) for group in groups.values()))
        _log.debug("sync.pass_completed", **report.as_dict())
        return report

    async def drain(self, max_passes: int = 100) -> DrainReport:
        """Run passes until no event is due (or *max_passes* is reached)."""
        total = DrainReport()
        for _ in range(max_passes):
            report = await self.run_once()
            total.merge(report)
            if report.fetched == 0:
                break
        return total

    async def _process_group(self, events: list[OutboxEvent], report: DrainReport) -> None:
        held: set[str] = set()
        for event in events:
            if event.listing_id in held:
                if await self._outbox.release(_sequence_of(event), lease=event.claimed_until):
                    report.released += 1
                else:
                    self._claim_lost(event, report)
                continue
            if not await self._deliver(event, report):
                held.add(event.listing_id)

    async def _deliver(self, event: OutboxEvent, report: DrainReport) -> bool:
        sequence = _sequence_of(event)
        try:
            await asyncio.wait_for(self._apply(event), timeout=self._config.index_timeout)
        except DocumentRejectedError as exc:
            if await self._fenced_by_tombstone(event):
                await self._handle_failure(event, exc, report)
                return False
            if not await self._outbox.mark_delivered(sequence, lease=event.claimed_until):
                self._claim_lost(event, report)
                return True
            report.superseded += 1
            _log.info(
                "sync.superseded",
                sequence=sequence,
                listing_id=event.listing_id,
                version=event.listing_version,
                stored_version=exc.stored_version,
            )
            return True
        except Exception as exc:  # noqa: BLE001
            await self._handle_failure(event, exc, report)
            return False
        if not await self._outbox.mark_delivered(sequence, lease=event.claimed_until):
            self._claim_lost(event, report)
            return True
        report.delivered += 1
        _log.debug(
            "sync.delivered",
            sequence=sequence,
            listing_id=event.listing_id,
            version=event.listing_version,
            operation=event.operation.value,
        )
        return True

    async def _fenced_by_tombstone(self, event: OutboxEvent) -> bool:
        """True when a resync upsert was rejected although no live document exists.

        Search engines keep a deleted document's tombstone, with a bumped
        version, until it is garbage collected. A drift repair that drops a
        document ahead of the store is fenced off by that tombstone for a
        while, so its upsert is retried rather than counted as superseded.
        """
        if not event.synthetic or event.operation is not SyncOperation.UPSERT:
            return False
        try:
            current = await asyncio.wait_for(self._index.get(event.listing_id), timeout=self._config.index_timeout)
        except (SyncError, TimeoutError):
            return True
        return current is None

    async def _apply(self, event: OutboxEvent) -> None:
        if event.operation is SyncOperation.UPSERT:
            await self._index.upsert(event.document())
        else:
            await self._index.delete(event.listing_id)

    async def _handle_failure(self, event: OutboxEvent, exc: Exception, report: DrainReport) -> None:
        sequence = _sequence_of(event)
        now = self._clock.now()
        attempts = event.attempts + 1
        error = self._describe(exc)
        if self._schedule.exhausted(event.first_attempt_at or now, now):
            if not await self._outbox.mark_failed(sequence, error=error, lease=event.claimed_until):
                self._claim_lost(event, report)
                return
            report.failed += 1
            failure = PermanentSyncError(
                f"Gave up syncing listing '{event.listing_id}' v{event.listing_version} "
                f"after {attempts} attempts",
                sequence=sequence,
                listing_id=event.listing_id,
                detail={"last_error": error},
                cause=exc,
            )
            _log.error(
                "sync.failed",
                sequence=sequence,
                listing_id=event.listing_id,
                version=event.listing_version,
                attempts=attempts,
                error=failure.to_dict(),
            )
            return
        next_attempt_at = self._schedule.next_attempt_at(now, attempts)
        if not await self._outbox.reschedule(
            sequence, next_attempt_at=next_attempt_at, error=error, lease=event.claimed_until
        ):
            self._claim_lost(event, report)
            return
        report.retried += 1
        _log.warning(
            "sync.retry_scheduled",
            sequence=sequence,
            listing_id=event.listing_id,
            version=event.listing_version,
            attempts=attempts,
            next_attempt_at=next_attempt_at.isoformat(),
            error=error,
        )

    def _claim_lost(self, event: OutboxEvent, report: DrainReport) -> None:
        # Another pass reclaimed the event after our lease ran out; its
        # outcome stands and the index fence absorbs the duplicate write.
        report.lost += 1
        _log.warning(
            "sync.claim_lost",
            sequence=event.sequence,
            listing_id=event.listing_id,
            version=event.listing_version,
        )

    def _describe(self, exc: Exception) -> str:
        if isinstance(exc, TimeoutError):
            return f"index call timed out after {self._config.index_timeout}s"
        return f"{type(exc).__name__}: {getattr(exc, 'message', None) or exc}"

    # ------------------------------------------------------------------
    # Drift detection
    # ------------------------------------------------------------------

    async def sweep(self, sample_size: int | None = None) -> list[DriftRecord]:
        """Compare one page of store versions with the index and repair drift.

        Successive calls walk the whole store and then wrap around. Listings
        with changes still in transit are left to the outbox.
        """
        size = sample_size or self._config.drift_sample_size
        page = await self._store.sample_versions(self._sweep_cursor, size)
        if not page and self._sweep_cursor is not None:
            self._sweep_cursor = None
            page = await self._store.sample_versions(None, size)
        if not page:
            return []
        self._sweep_cursor = page[-1].listing_id if len(page) == size else None

        ids = [stamp.listing_id for stamp in page]
        indexed = await asyncio.wait_for(self._index.versions(ids), timeout=self._config.index_timeout)
        in_transit = await self._outbox.undelivered_listing_ids(ids)

        drift: list[DriftRecord] = []
        for stamp in page:
            if stamp.listing_id in in_transit:
                continue
            record = DriftRecord.detect(stamp, indexed.get(stamp.listing_id))
            if record is None:
                continue
            await self._store.enqueue_resync(stamp.listing_id, replace=record.index_ahead)
            _log.warning(
                "sync.drift_detected",
                listing_id=record.listing_id,
                store_version=record.store_version,
                index_version=record.index_version,
                store_deleted=record.store_deleted,
            )
            drift.append(record)
        return drift

    async def housekeep(self) -> int:
        """Purge delivered events older than the retention period."""
        cutoff = self._clock.now() - timedelta(seconds=self._config.delivered_retention)
        purged = await self._outbox.purge_delivered(cutoff)
        if purged:
            _log.info("sync.outbox_purged", purged=purged, before=cutoff.isoformat())
        return purged

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        """Spawn the drain and sweep loops; calling twice is a no-op."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._drain_loop(), name="catalog-sync-drain"),
            asyncio.create_task(self._sweep_loop(), name="catalog-sync-sweep"),
        ]
        _log.info("sync.started", partitions=self._config.partitions, batch_size=self._config.batch_size)

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            _log.info("sync.stopped")

    async def __aenter__(self) -> SyncReconciler:
        await self.start()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.stop()

    async def _drain_loop(self) -> None:
        while True:
            fetched = 0
            try:
                fetched = (await self.run_once()).fetched
            except Exception:  # noqa: BLE001
                _log.exception("sync.pass_crashed")
            if fetched < self._config.batch_size:
                await asyncio.sleep(self._config.poll_interval)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.drift_sweep_interval)
            try:
                await self.sweep()
                await self.housekeep()
            except Exception:  # noqa: BLE001
                _log.exception("sync.sweep_crashed")


__all__ = ["ReconcilerConfig", "SyncReconciler", "partition_of", "schedule_from_settings"]
