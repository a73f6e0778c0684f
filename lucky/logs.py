from __future__ import annotations

import logging
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", pod_name: str | None = None) -> None:
    """Send lucky.* records to stderr once per process.

    When the orchestrator supplies a pod name it is prefixed to every record so
    replica logs can be told apart.
    """
    fmt = f"[{pod_name}] {LOG_FORMAT}" if pod_name else LOG_FORMAT
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))

    root = logging.getLogger("lucky")
    root.handlers[:] = [handler]
    root.setLevel(level.upper())
