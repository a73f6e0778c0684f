from __future__ import annotations

import enum
import time
from dataclasses import dataclass

import httpx


class ProbeStatus(str, enum.Enum):
    OK = "ok"
    UNEXPECTED = "unexpected"
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class HealthProbeResult:
    reachable: bool
    reported_status: ProbeStatus
    detail: str
    latency_ms: float | None = None

    @property
    def ok(self) -> bool:
        return self.reported_status is ProbeStatus.OK


def probe_readiness(
    url: str,
    timeout_s: float = 2.0,
    transport: httpx.BaseTransport | None = None,
) -> HealthProbeResult:
    """Call a readiness endpoint once.

    Expected JSON: {"status": "ok"}. Anything else is not ready.
    """
    start = time.time()

    def _elapsed() -> float:
        return round((time.time() - start) * 1000.0, 2)

    try:
        with httpx.Client(timeout=timeout_s, follow_redirects=False, transport=transport) as client:
            resp = client.get(url)
    except httpx.TimeoutException:
        return HealthProbeResult(False, ProbeStatus.TIMEOUT, f"Timed out after {timeout_s}s", _elapsed())
    except httpx.TransportError as e:
        return HealthProbeResult(False, ProbeStatus.UNREACHABLE, f"No response: {type(e).__name__}: {e}", _elapsed())
    except Exception as e:
        return HealthProbeResult(False, ProbeStatus.UNREACHABLE, f"Error: {type(e).__name__}: {e}", _elapsed())

    latency_ms = _elapsed()
    if not resp.is_success:
        return HealthProbeResult(True, ProbeStatus.UNEXPECTED, f"HTTP {resp.status_code}", latency_ms)
    try:
        data = resp.json()
    except ValueError:
        return HealthProbeResult(True, ProbeStatus.UNEXPECTED, "Invalid JSON", latency_ms)
    if isinstance(data, dict) and data.get("status") == "ok":
        return HealthProbeResult(True, ProbeStatus.OK, "Ready", latency_ms)
    return HealthProbeResult(True, ProbeStatus.UNEXPECTED, f"Unexpected payload: {data!r}", latency_ms)
