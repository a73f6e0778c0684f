import socket
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from lucky.backend import create_backend_app
from lucky.gate import DependencyGate, DependencyUnavailable, GateDecision, decide
from lucky.health import HealthProbeResult, ProbeStatus, probe_readiness
from lucky.settings import BackendSettings

PING_URL = "http://lucky-number-app/ping"


def _transport(handler):
    return httpx.MockTransport(handler)


def _probe_with(handler):
    return probe_readiness(PING_URL, timeout_s=1.0, transport=_transport(handler))


def test_probe_ok():
    result = _probe_with(lambda req: httpx.Response(200, json={"status": "ok"}))
    assert result.reachable is True
    assert result.reported_status is ProbeStatus.OK
    assert decide(result) is GateDecision.PROCEED


@pytest.mark.parametrize(
    "handler,reachable,expected",
    [
        (lambda req: httpx.Response(503, json={"status": "starting"}), True, ProbeStatus.UNEXPECTED),
        (lambda req: httpx.Response(500, text="boom"), True, ProbeStatus.UNEXPECTED),
        (lambda req: httpx.Response(200, json={"status": "starting"}), True, ProbeStatus.UNEXPECTED),
        (lambda req: httpx.Response(200, json=["ok"]), True, ProbeStatus.UNEXPECTED),
        (lambda req: httpx.Response(200, text="ok"), True, ProbeStatus.UNEXPECTED),
    ],
)
def test_probe_not_ok_responses_abort(handler, reachable, expected):
    result = _probe_with(handler)
    assert result.reachable is reachable
    assert result.reported_status is expected
    assert decide(result) is GateDecision.ABORT


def test_probe_timeout_aborts():
    def handler(req):
        raise httpx.ReadTimeout("timed out", request=req)

    result = _probe_with(handler)
    assert result.reachable is False
    assert result.reported_status is ProbeStatus.TIMEOUT
    assert decide(result) is GateDecision.ABORT


def test_probe_connection_refused_aborts():
    def handler(req):
        raise httpx.ConnectError("connection refused", request=req)

    result = _probe_with(handler)
    assert result.reachable is False
    assert result.reported_status is ProbeStatus.UNREACHABLE
    assert decide(result) is GateDecision.ABORT


def _free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def test_probe_real_closed_port_aborts_within_timeout():
    url = f"http://127.0.0.1:{_free_port()}/ping"
    timeout_s = 1.0

    start = time.monotonic()
    result = probe_readiness(url, timeout_s=timeout_s)
    elapsed = time.monotonic() - start

    assert decide(result) is GateDecision.ABORT
    assert result.reported_status in {ProbeStatus.UNREACHABLE, ProbeStatus.TIMEOUT}
    assert elapsed < timeout_s + 1.0


def _fixed(*statuses):
    calls = []
    seq = iter(statuses)

    def probe(url, timeout_s):
        calls.append((url, timeout_s))
        st = next(seq)
        return HealthProbeResult(st is not ProbeStatus.UNREACHABLE, st, st.value, 1.0)

    return probe, calls


def test_gate_proceeds_on_ok():
    probe, calls = _fixed(ProbeStatus.OK)
    gate = DependencyGate(PING_URL, timeout_s=2.0, probe=probe)
    assert gate.run() is GateDecision.PROCEED
    assert gate.decision is GateDecision.PROCEED
    assert calls == [(PING_URL, 2.0)]


def test_gate_fails_fast_without_retries(caplog):
    probe, calls = _fixed(ProbeStatus.UNREACHABLE)
    sleeps = []
    gate = DependencyGate(PING_URL, probe=probe, sleep=sleeps.append)

    with caplog.at_level("ERROR", logger="lucky.gate"):
        assert gate.run() is GateDecision.ABORT

    assert len(calls) == 1
    assert sleeps == []
    assert PING_URL in caplog.text


def test_gate_retries_until_ready():
    probe, calls = _fixed(ProbeStatus.UNEXPECTED, ProbeStatus.UNEXPECTED, ProbeStatus.OK)
    sleeps = []
    gate = DependencyGate(PING_URL, retries=3, retry_interval_s=0.5, probe=probe, sleep=sleeps.append)

    assert gate.run() is GateDecision.PROCEED
    assert len(calls) == 3
    assert sleeps == [0.5, 0.5]


def test_gate_retries_are_bounded():
    probe, calls = _fixed(ProbeStatus.TIMEOUT, ProbeStatus.TIMEOUT, ProbeStatus.TIMEOUT)
    gate = DependencyGate(PING_URL, retries=2, probe=probe, sleep=lambda s: None)

    assert gate.run() is GateDecision.ABORT
    assert len(calls) == 3
    assert gate.last_result.reported_status is ProbeStatus.TIMEOUT


def test_gate_runs_once():
    probe, _ = _fixed(ProbeStatus.OK)
    gate = DependencyGate(PING_URL, probe=probe)
    gate.run()
    with pytest.raises(RuntimeError):
        gate.run()


def test_gate_require_raises_on_abort():
    probe, _ = _fixed(ProbeStatus.UNREACHABLE)
    gate = DependencyGate(PING_URL, probe=probe)
    with pytest.raises(DependencyUnavailable) as exc:
        gate.require()
    assert PING_URL in str(exc.value)


def test_probe_unparseable_url_is_unreachable():
    result = probe_readiness("http://[::1/ping", timeout_s=1.0)
    assert result.reachable is False
    assert result.reported_status is ProbeStatus.UNREACHABLE
    assert result.detail.startswith("Error:")
    assert decide(result) is GateDecision.ABORT


def _backend_probe(client):
    # route the gate's probes through the in-process backend app
    return lambda url, timeout_s: probe_readiness(url, timeout_s, transport=client._transport)


def test_gate_against_backend_aborts_while_starting_and_proceeds_once_ready():
    settings = BackendSettings(startup_delay_s=60, processing_delay_s=0)
    app = create_backend_app(settings)

    with TestClient(app) as client:
        starting = probe_readiness("http://testserver/ping", 1.0, transport=client._transport)
        assert starting.reachable is True
        assert starting.reported_status is ProbeStatus.UNEXPECTED
        assert starting.detail == "HTTP 503"

        gate = DependencyGate("http://testserver/ping", probe=_backend_probe(client))
        assert gate.run() is GateDecision.ABORT

        app.state.lifecycle.mark_ready()

        gate = DependencyGate("http://testserver/ping", probe=_backend_probe(client))
        assert gate.run() is GateDecision.PROCEED
        assert gate.last_result.reported_status is ProbeStatus.OK


def test_gate_with_retries_proceeds_after_backend_startup_delay():
    settings = BackendSettings(startup_delay_s=0.3, processing_delay_s=0)
    app = create_backend_app(settings)

    with TestClient(app) as client:
        gate = DependencyGate(
            "http://testserver/ping",
            retries=30,
            retry_interval_s=0.05,
            probe=_backend_probe(client),
        )
        start = time.monotonic()
        assert gate.run() is GateDecision.PROCEED
        elapsed = time.monotonic() - start

    assert elapsed >= 0.2
    assert app.state.lifecycle.is_ready()
