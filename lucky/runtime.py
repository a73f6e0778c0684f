from __future__ import annotations

import enum
import logging
import time
from threading import Lock, Timer

log = logging.getLogger(__name__)


class ServiceState(str, enum.Enum):
    STARTING = "starting"
    READY = "ready"
    CRASHED = "crashed"


class ServiceLifecycle:
    """Process-local lifecycle state shared by the backend's endpoints.

    STARTING -> READY once the startup delay elapses, anything -> CRASHED when a
    fault is injected. CRASHED is terminal; a restarted process gets a new
    instance.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._state = ServiceState.STARTING
        self.started_at = time.monotonic()
        self.ready_at: float | None = None

    @property
    def state(self) -> ServiceState:
        with self._lock:
            return self._state

    def is_ready(self) -> bool:
        return self.state is ServiceState.READY

    def mark_ready(self) -> bool:
        """Move STARTING -> READY. Returns False if the state was not STARTING."""
        with self._lock:
            if self._state is not ServiceState.STARTING:
                return False
            self._state = ServiceState.READY
            self.ready_at = time.monotonic()
            return True

    def mark_crashed(self) -> None:
        with self._lock:
            self._state = ServiceState.CRASHED


class StartupSequencer:
    """One-shot timer that makes the service ready after a cold-start delay."""

    def __init__(self, lifecycle: ServiceLifecycle, delay_s: float):
        self.lifecycle = lifecycle
        self.delay_s = max(0.0, float(delay_s))
        self._timer: Timer | None = None

    def start(self) -> None:
        if self._timer is not None:
            return
        log.info("App is starting... please wait (%.1fs)", self.delay_s)
        if self.delay_s == 0:
            self._finish()
            return
        self._timer = Timer(self.delay_s, self._finish)
        self._timer.daemon = True
        self._timer.start()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

    def _finish(self) -> None:
        if self.lifecycle.mark_ready():
            log.info("App is ready!")
