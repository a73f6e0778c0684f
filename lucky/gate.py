from __future__ import annotations

import enum
import logging
import time
from typing import Callable

from .health import HealthProbeResult, ProbeStatus, probe_readiness

log = logging.getLogger(__name__)


class GateDecision(str, enum.Enum):
    PROCEED = "proceed"
    ABORT = "abort"


class DependencyUnavailable(Exception):
    pass


def decide(result: HealthProbeResult) -> GateDecision:
    if result.reported_status is ProbeStatus.OK:
        return GateDecision.PROCEED
    return GateDecision.ABORT


class DependencyGate:
    """One-shot startup check of a dependency's readiness endpoint.

    Probes up to retries + 1 times and settles on a single decision for the
    lifetime of the process. Later dependency failures are not re-gated here.
    """

    def __init__(
        self,
        ping_url: str,
        timeout_s: float = 2.0,
        retries: int = 0,
        retry_interval_s: float = 1.0,
        probe: Callable[[str, float], HealthProbeResult] = probe_readiness,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.ping_url = ping_url
        self.timeout_s = timeout_s
        self.retries = max(0, int(retries))
        self.retry_interval_s = max(0.0, float(retry_interval_s))
        self._probe = probe
        self._sleep = sleep
        self._decision: GateDecision | None = None
        self.last_result: HealthProbeResult | None = None

    @property
    def decision(self) -> GateDecision | None:
        return self._decision

    def run(self) -> GateDecision:
        if self._decision is not None:
            raise RuntimeError("Dependency gate has already run")

        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            result = self._probe(self.ping_url, self.timeout_s)
            self.last_result = result
            if decide(result) is GateDecision.PROCEED:
                log.info("Dependency ready at %s (%s ms)", self.ping_url, result.latency_ms)
                self._decision = GateDecision.PROCEED
                return self._decision
            if attempt < attempts:
                log.warning(
                    "Probe %d/%d of %s failed (%s: %s), retrying in %.1fs",
                    attempt,
                    attempts,
                    self.ping_url,
                    result.reported_status.value,
                    result.detail,
                    self.retry_interval_s,
                )
                self._sleep(self.retry_interval_s)

        log.error(
            "Could not reach lucky-number-app /ping endpoint at %s: %s (%s)",
            self.ping_url,
            result.detail,
            result.reported_status.value,
        )
        self._decision = GateDecision.ABORT
        return self._decision

    def require(self) -> None:
        """Run the gate and raise DependencyUnavailable on ABORT."""
        if self.run() is GateDecision.ABORT:
            raise DependencyUnavailable(f"{self.ping_url}: {self.last_result.detail}")
