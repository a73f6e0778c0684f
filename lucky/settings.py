from __future__ import annotations

import os
import re
from dataclasses import dataclass

DELAY_MODES = ("blocking", "nonblocking")


class SettingsError(ValueError):
    pass


def _env_str(name: str, default: str | None = None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise SettingsError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise SettingsError(f"{name} must be a number, got {raw!r}") from None


def _check_port(port: int) -> None:
    if not 1 <= port <= 65535:
        raise SettingsError(f"PORT must be between 1 and 65535, got {port}")


def derive_ping_url(lucky_api_url: str) -> str:
    """Probe URL for a lucky endpoint: the trailing path segment becomes /ping.

    http://lucky-number-app/lucky -> http://lucky-number-app/ping
    """
    url = lucky_api_url.rstrip("/")
    if re.search(r"/lucky$", url):
        return re.sub(r"/lucky$", "/ping", url)
    scheme_sep = url.find("://")
    path_start = url.find("/", scheme_sep + 3 if scheme_sep >= 0 else 0)
    if path_start < 0:
        return f"{url}/ping"
    return url.rsplit("/", 1)[0] + "/ping"


@dataclass(frozen=True)
class BackendSettings:
    host: str = "0.0.0.0"
    port: int = 3001
    pod_name: str | None = None
    startup_delay_s: float = 5.0
    processing_delay_s: float = 5.0
    delay_mode: str = "blocking"
    lucky_min: int = 10
    lucky_max: int = 99
    crash_exit_code: int = 1
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "BackendSettings":
        s = cls(
            host=_env_str("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3001),
            pod_name=_env_str("POD_NAME"),
            startup_delay_s=_env_float("STARTUP_DELAY_S", 5.0),
            processing_delay_s=_env_float("PROCESSING_DELAY_S", 5.0),
            delay_mode=(_env_str("DELAY_MODE", "blocking") or "blocking").lower(),
            lucky_min=_env_int("LUCKY_MIN", 10),
            lucky_max=_env_int("LUCKY_MAX", 99),
            crash_exit_code=_env_int("CRASH_EXIT_CODE", 1),
            log_level=(_env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
        )
        s.validate()
        return s

    def validate(self) -> None:
        _check_port(self.port)
        if self.startup_delay_s < 0:
            raise SettingsError("STARTUP_DELAY_S must not be negative")
        if self.processing_delay_s < 0:
            raise SettingsError("PROCESSING_DELAY_S must not be negative")
        if self.delay_mode not in DELAY_MODES:
            raise SettingsError(f"DELAY_MODE must be one of {', '.join(DELAY_MODES)}, got {self.delay_mode!r}")
        if self.lucky_min > self.lucky_max:
            raise SettingsError("LUCKY_MIN must be less than or equal to LUCKY_MAX")
        # A crash must be visible to the orchestrator as a failure.
        if self.crash_exit_code == 0:
            raise SettingsError("CRASH_EXIT_CODE must be non-zero")


@dataclass(frozen=True)
class FrontendSettings:
    host: str = "0.0.0.0"
    port: int = 4000
    pod_name: str | None = None
    lucky_api_url: str = "http://lucky-number-app/lucky"
    ping_timeout_s: float = 2.0
    gate_retries: int = 0
    gate_retry_interval_s: float = 1.0
    upstream_timeout_s: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "FrontendSettings":
        s = cls(
            host=_env_str("HOST", "0.0.0.0"),
            port=_env_int("PORT", 4000),
            pod_name=_env_str("POD_NAME"),
            lucky_api_url=_env_str("LUCKY_API_URL", "http://lucky-number-app/lucky"),
            ping_timeout_s=_env_float("PING_TIMEOUT_S", 2.0),
            gate_retries=_env_int("GATE_RETRIES", 0),
            gate_retry_interval_s=_env_float("GATE_RETRY_INTERVAL_S", 1.0),
            upstream_timeout_s=_env_float("UPSTREAM_TIMEOUT_S", 10.0),
            log_level=(_env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
        )
        s.validate()
        return s

    @property
    def ping_url(self) -> str:
        return derive_ping_url(self.lucky_api_url)

    def validate(self) -> None:
        _check_port(self.port)
        if not self.lucky_api_url.startswith(("http://", "https://")):
            raise SettingsError(f"LUCKY_API_URL must be an http(s) URL, got {self.lucky_api_url!r}")
        if self.ping_timeout_s <= 0:
            raise SettingsError("PING_TIMEOUT_S must be positive")
        if self.gate_retries < 0:
            raise SettingsError("GATE_RETRIES must not be negative")
        if self.gate_retry_interval_s < 0:
            raise SettingsError("GATE_RETRY_INTERVAL_S must not be negative")
        if self.upstream_timeout_s <= 0:
            raise SettingsError("UPSTREAM_TIMEOUT_S must be positive")
