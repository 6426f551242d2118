"""
SyncCoordinator -- client-side drain of the action queue.

Contract:
    - ``sync()`` submits every pending action to the transport, marks the
      applied ones synced, purges them, and returns a SyncReport.
    - ``start()`` / ``stop()`` run a consumer thread that calls ``sync()``
      once per ONLINE transition from the ConnectivityMonitor.
    - ``add_listener()`` registers callbacks that receive every report.

Invariants enforced:
    - At most one sync in flight per coordinator: an overlapping call
      returns a BUSY report immediately instead of waiting.
    - An action leaves the pending set only after the server confirmed it
      as applied.  Rejected actions, actions missing from the response,
      and whole batches lost to a TransientIOError stay pending.
    - A sync in flight is never cancelled; ``stop()`` waits for it.

Failure modes:
    - QueueStorageError from the local queue propagates to the caller.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime
from typing import Callable
from uuid import UUID, uuid4

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import TransientIOError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_sync.domain.types import (
    Applied,
    ConnectivityState,
    QueuedAction,
    RejectionPolicy,
    RejectionReason,
    SyncFailure,
    SyncReport,
    SyncStatus,
)
from inventory_sync.services.action_queue import ActionQueue
from inventory_sync.services.connectivity import ConnectivityMonitor
from inventory_sync.services.transport import SyncTransport

logger = get_logger("sync.coordinator")

ReportListener = Callable[[SyncReport], None]

_MISSING_OUTCOME_MESSAGE = "Server returned no outcome for this action"


class SyncCoordinator:
    """Drains the ActionQueue through a SyncTransport."""

    def __init__(
        self,
        queue: ActionQueue,
        transport: SyncTransport,
        monitor: ConnectivityMonitor,
        actor_id: UUID,
        rejection_policy: RejectionPolicy = RejectionPolicy.KEEP,
        clock: Clock | None = None,
        poll_interval_seconds: float = 1.0,
        device_id: str | None = None,
    ):
        self._queue = queue
        self._transport = transport
        self._monitor = monitor
        self._actor_id = actor_id
        self._rejection_policy = rejection_policy
        self._clock = clock or SystemClock()
        self._poll_interval = poll_interval_seconds
        self._device_id = device_id
        self._sync_lock = threading.Lock()
        self._listeners: list[ReportListener] = []
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def add_listener(self, listener: ReportListener) -> None:
        self._listeners.append(listener)

    def sync(self) -> SyncReport:
        """Run one sync cycle.  Never blocks on another cycle."""
        if not self._sync_lock.acquire(blocking=False):
            logger.info("sync_skipped_busy")
            return SyncReport(status=SyncStatus.BUSY)
        try:
            report = self._run_sync()
        finally:
            self._sync_lock.release()

        self._publish(report)
        return report

    @property
    def is_syncing(self) -> bool:
        return self._sync_lock.locked()

    def start(self) -> None:
        """Start the consumer thread that syncs on every ONLINE transition."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="sync-coordinator",
            daemon=True,
        )
        self._thread.start()
        logger.info("sync_consumer_started")

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the consumer (and any sync in flight)."""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("sync_consumer_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            transition = self._monitor.next_transition(timeout=self._poll_interval)
            if transition is None or transition.state is not ConnectivityState.ONLINE:
                continue
            try:
                self.sync()
            except Exception:
                logger.exception("sync_consumer_exception")

    def _run_sync(self) -> SyncReport:
        started_at = self._clock.now()
        start_time = time.monotonic()

        if not self._monitor.is_online:
            logger.info("sync_skipped_offline")
            return SyncReport(status=SyncStatus.OFFLINE, started_at=started_at)

        pending = self._queue.list_pending()
        if not pending:
            return SyncReport(status=SyncStatus.NOTHING_TO_SYNC, started_at=started_at)

        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=str(self._actor_id),
            device_id=self._device_id,
        ):
            logger.info("sync_started", extra={"pending": len(pending)})

            try:
                outcomes = self._transport.submit(pending, self._actor_id)
            except TransientIOError as exc:
                logger.warning(
                    "sync_transport_failed",
                    extra={"pending": len(pending)},
                    exc_info=True,
                )
                report = self._transport_failed(pending, exc, started_at, start_time)
                self._log_completed(report)
                return report

            by_id = {outcome.action_id: outcome for outcome in outcomes}
            succeeded = 0
            discarded = 0
            failures: list[SyncFailure] = []

            for action in pending:
                outcome = by_id.get(action.action_id)
                if isinstance(outcome, Applied):
                    self._queue.mark_synced(action.action_id)
                    succeeded += 1
                    continue

                if outcome is None:
                    reason, message = RejectionReason.TRANSIENT_IO, _MISSING_OUTCOME_MESSAGE
                else:
                    reason, message = outcome.reason, outcome.message
                failures.append(SyncFailure(action=action, reason=reason, message=message))
                self._queue.record_failure(action.action_id, f"{reason.value}: {message}")

                if (
                    self._rejection_policy is RejectionPolicy.DISCARD
                    and not reason.retryable
                    and self._queue.discard(action.action_id)
                ):
                    discarded += 1

            self._queue.purge_synced()

            if not failures:
                status = SyncStatus.COMPLETED
            elif succeeded == 0:
                status = SyncStatus.FAILED
            else:
                status = SyncStatus.PARTIALLY_COMPLETED

            report = SyncReport(
                status=status,
                succeeded=succeeded,
                failed=len(failures),
                failures=tuple(failures),
                discarded=discarded,
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=_elapsed_ms(start_time),
            )
            self._log_completed(report)
            return report

    def _transport_failed(
        self,
        pending: tuple[QueuedAction, ...],
        exc: TransientIOError,
        started_at: datetime,
        start_time: float,
    ) -> SyncReport:
        message = str(exc)
        for action in pending:
            self._queue.record_failure(
                action.action_id, f"{RejectionReason.TRANSIENT_IO.value}: {message}",
            )
        return SyncReport(
            status=SyncStatus.TRANSPORT_FAILED,
            failed=len(pending),
            failures=tuple(
                SyncFailure(action=a, reason=RejectionReason.TRANSIENT_IO, message=message)
                for a in pending
            ),
            started_at=started_at,
            completed_at=self._clock.now(),
            duration_ms=_elapsed_ms(start_time),
        )

    def _log_completed(self, report: SyncReport) -> None:
        logger.info(
            "sync_completed",
            extra={
                "status": report.status.value,
                "succeeded": report.succeeded,
                "failed": report.failed,
                "discarded": report.discarded,
                "duration_ms": report.duration_ms,
            },
        )

    def _publish(self, report: SyncReport) -> None:
        for listener in list(self._listeners):
            try:
                listener(report)
            except Exception:
                logger.exception("sync_listener_failed")


def _elapsed_ms(start_time: float) -> int:
    return round((time.monotonic() - start_time) * 1000)
