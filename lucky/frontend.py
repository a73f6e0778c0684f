from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, status
from fastapi.responses import HTMLResponse, PlainTextResponse

from .render import render_lucky_page
from .settings import FrontendSettings

log = logging.getLogger(__name__)


class UpstreamTimeout(Exception):
    pass


class UpstreamError(Exception):
    pass


async def fetch_lucky_number(
    url: str,
    timeout_s: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
        try:
            resp = await client.get(url)
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(f"{url} did not answer within {timeout_s}s") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"lucky-number-app call failed: {exc}") from exc

    try:
        data = resp.json()
        number = data["luckyNumber"]
    except (ValueError, TypeError, KeyError) as exc:
        raise UpstreamError(f"Malformed response from {url}: {resp.text[:200]!r}") from exc
    if not isinstance(number, int) or isinstance(number, bool):
        raise UpstreamError(f"luckyNumber is not an integer: {number!r}")
    return number


def create_frontend_app(
    settings: FrontendSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the lucky-web-app.

    Only the launcher calls this, and only after the dependency gate decided to
    proceed.
    """
    app = FastAPI(title="lucky-web-app")

    @app.get("/", response_class=HTMLResponse)
    async def index():
        try:
            number = await fetch_lucky_number(settings.lucky_api_url, settings.upstream_timeout_s, transport)
            return HTMLResponse(render_lucky_page(number))
        except UpstreamTimeout as exc:
            log.error("Upstream timeout: %s", exc)
            return PlainTextResponse(
                "Upstream timeout fetching lucky number",
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            )
        except Exception:
            log.exception("Failed to fetch lucky number from %s", settings.lucky_api_url)
            return PlainTextResponse(
                "Failed to fetch lucky number",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

    return app
