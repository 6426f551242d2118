"""
ConnectivityMonitor -- observable online/offline state for the client.

Contract:
    - ``is_online`` is the current reachability of the sync server.
    - ``set_online()`` feeds an external event source (OS network events,
      a UI toggle); ``tick()`` runs the probe once.
    - Every state change is put on a single-consumer channel read with
      ``next_transition()``.
    - ``start()`` / ``stop()`` run ``tick()`` on a background thread every
      ``check_interval_seconds``.

Invariants enforced:
    - An ONLINE transition within ``debounce_seconds`` of the previously
      emitted ONLINE transition is coalesced, so a flapping link triggers
      one sync rather than one per flap.
    - A coalesced ONLINE is owed, not dropped.  If the link is still up once
      the window has passed, the next ``tick()`` or ``next_transition()``
      emits it.  Going offline again cancels it.
    - A probe that raises counts as offline.
"""

from __future__ import annotations

import queue
import socket
import threading
from typing import Callable

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import get_logger
from inventory_sync.domain.types import ConnectivityState, ConnectivityTransition

logger = get_logger("sync.connectivity")

Probe = Callable[[], bool]


def tcp_probe(host: str, port: int, timeout: float = 3.0) -> Probe:
    """Probe that succeeds when a TCP connection to host:port opens."""

    def probe() -> bool:
        try:
            with socket.create_connection((host, port), timeout=timeout):
                return True
        except OSError:
            return False

    return probe


class ConnectivityMonitor:
    """Owns the client's view of server reachability."""

    def __init__(
        self,
        probe: Probe | None = None,
        check_interval_seconds: float = 15.0,
        debounce_seconds: float = 5.0,
        clock: Clock | None = None,
        initial_online: bool = False,
    ):
        self._probe = probe
        self._check_interval = check_interval_seconds
        self._debounce_seconds = debounce_seconds
        self._clock = clock or SystemClock()
        self._online = initial_online
        self._last_online_emitted = None
        self._online_owed = False
        self._state_lock = threading.Lock()
        self._transitions: queue.Queue[ConnectivityTransition] = queue.Queue()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def is_online(self) -> bool:
        with self._state_lock:
            return self._online

    def set_online(self, online: bool) -> bool:
        """Record the current reachability.

        Returns True if a transition was emitted.
        """
        now = self._clock.now()
        with self._state_lock:
            if online == self._online:
                return False
            self._online = online
            self._online_owed = False

            if online:
                if self._within_debounce(now):
                    self._online_owed = True
                    logger.debug("online_transition_coalesced")
                    return False
                self._last_online_emitted = now

        self._emit(online, now)
        return True

    def _within_debounce(self, now) -> bool:
        last = self._last_online_emitted
        return (
            last is not None
            and (now - last).total_seconds() < self._debounce_seconds
        )

    def _emit(self, online: bool, now) -> None:
        state = ConnectivityState.ONLINE if online else ConnectivityState.OFFLINE
        self._transitions.put(ConnectivityTransition(state=state, observed_at=now))
        logger.info("connectivity_changed", extra={"state": state.value})

    def _release_owed_online(self) -> bool:
        now = self._clock.now()
        with self._state_lock:
            if not (self._online and self._online_owed):
                return False
            if self._within_debounce(now):
                return False
            self._online_owed = False
            self._last_online_emitted = now
        logger.debug("owed_online_released")
        self._emit(True, now)
        return True

    def tick(self) -> bool:
        """Run the probe once and record the result.  Returns is_online."""
        self._release_owed_online()
        if self._probe is None:
            return self.is_online
        try:
            reachable = bool(self._probe())
        except Exception:
            logger.warning("connectivity_probe_failed", exc_info=True)
            reachable = False
        self.set_online(reachable)
        return reachable

    def next_transition(
        self, timeout: float | None = None,
    ) -> ConnectivityTransition | None:
        """Block up to ``timeout`` seconds for the next transition."""
        self._release_owed_online()
        try:
            return self._transitions.get(timeout=timeout)
        except queue.Empty:
            return None

    # -------------------------------------------------------------------------
    # Background polling
    # -------------------------------------------------------------------------

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="connectivity-monitor",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "connectivity_monitor_started",
            extra={"check_interval": self._check_interval},
        )

    def stop(self, timeout: float = 10.0) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("connectivity_monitor_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(timeout=self._check_interval)
