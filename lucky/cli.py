from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor

import requests
import uvicorn

from .backend import create_backend_app
from .frontend import create_frontend_app
from .gate import DependencyGate, DependencyUnavailable
from .health import probe_readiness
from .logs import configure_logging
from .settings import BackendSettings, FrontendSettings, SettingsError

log = logging.getLogger("lucky.cli")


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def run_backend() -> int:
    settings = BackendSettings.from_env()
    configure_logging(settings.log_level, settings.pod_name)
    log.info("Running on pod: %s (delay mode: %s)", settings.pod_name, settings.delay_mode)
    app = create_backend_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, workers=1)
    return 0


def run_frontend() -> int:
    settings = FrontendSettings.from_env()
    configure_logging(settings.log_level, settings.pod_name)
    gate = DependencyGate(
        settings.ping_url,
        timeout_s=settings.ping_timeout_s,
        retries=settings.gate_retries,
        retry_interval_s=settings.gate_retry_interval_s,
    )
    try:
        gate.require()
    except DependencyUnavailable:
        log.error("Startup aborted: lucky-number-app is not reachable.")
        return 1

    app = create_frontend_app(settings)
    log.info("Lucky Web App running on port %d", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, workers=1)
    return 0


def _timed_get(url: str, started: float, timeout_s: float) -> dict:
    try:
        r = requests.get(url, timeout=timeout_s)
        outcome = {"status": r.status_code}
        if r.ok:
            outcome["luckyNumber"] = r.json().get("luckyNumber")
    except requests.RequestException as e:
        outcome = {"error": f"{type(e).__name__}: {e}"}
    outcome["completed_after_s"] = round(time.monotonic() - started, 3)
    return outcome


def run_load(base: str, count: int, concurrency: int, timeout_s: float) -> int:
    """Fire concurrent /lucky calls and report when each one finished.

    Against a blocking-delay backend the completion times come out roughly one
    processing delay apart.
    """
    url = f"{base}/lucky"
    started = time.monotonic()
    with ThreadPoolExecutor(max_workers=max(1, concurrency)) as pool:
        futures = [pool.submit(_timed_get, url, started, timeout_s) for _ in range(count)]
        results = [f.result() for f in futures]
    results.sort(key=lambda x: x["completed_after_s"])
    _print({"url": url, "requests": count, "concurrency": concurrency, "results": results})
    return 0 if all(x.get("status") == 200 for x in results) else 1


def run_crash(base: str, timeout_s: float) -> int:
    try:
        r = requests.get(f"{base}/crash", timeout=timeout_s)
    except requests.ConnectionError as e:
        # The process may die before the acknowledgement arrives.
        _print({"crashed": True, "detail": f"connection dropped: {e}"})
        return 0
    except requests.RequestException as e:
        _print({"crashed": False, "detail": f"{type(e).__name__}: {e}"})
        return 1
    _print({"crashed": r.ok, "status": r.status_code, "body": r.text})
    return 0 if r.ok else 1


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Lucky Number service pair")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("backend", help="Run lucky-number-app (configured from the environment)")
    sub.add_parser("frontend", help="Gate on the backend, then run lucky-web-app")

    s_probe = sub.add_parser("probe", help="Probe a readiness endpoint once")
    s_probe.add_argument("--url", help="Ping URL (default: derived from LUCKY_API_URL)")
    s_probe.add_argument("--timeout", type=float, default=2.0)

    s_load = sub.add_parser("load", help="Send concurrent /lucky requests to a backend")
    s_load.add_argument("--api", default="http://localhost:3001", help="Backend base URL")
    s_load.add_argument("--requests", type=int, default=10)
    s_load.add_argument("--concurrency", type=int, default=10)
    s_load.add_argument("--timeout", type=float, default=120.0)

    s_crash = sub.add_parser("crash", help="Trigger the backend fault injector")
    s_crash.add_argument("--api", default="http://localhost:3001", help="Backend base URL")
    s_crash.add_argument("--timeout", type=float, default=10.0)

    args = p.parse_args(argv)

    try:
        if args.cmd == "backend":
            return run_backend()

        if args.cmd == "frontend":
            return run_frontend()

        if args.cmd == "probe":
            url = args.url or FrontendSettings.from_env().ping_url
            result = probe_readiness(url, timeout_s=args.timeout)
            _print(
                {
                    "url": url,
                    "reachable": result.reachable,
                    "reportedStatus": result.reported_status.value,
                    "detail": result.detail,
                    "latency_ms": result.latency_ms,
                }
            )
            return 0 if result.ok else 1

        if args.cmd == "load":
            return run_load(args.api.rstrip("/"), args.requests, args.concurrency, args.timeout)

        if args.cmd == "crash":
            return run_crash(args.api.rstrip("/"), args.timeout)
    except SettingsError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
