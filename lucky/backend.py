from __future__ import annotations

import logging
import os
import random
from typing import Callable

from fastapi import BackgroundTasks, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse

from .api_models import CrashResponse, LuckyNumberResponse, PingResponse
from .delay import DelayPolicy, delay_policy_for
from .runtime import ServiceLifecycle, ServiceState, StartupSequencer
from .settings import BackendSettings

log = logging.getLogger(__name__)


def create_backend_app(
    settings: BackendSettings,
    lifecycle: ServiceLifecycle | None = None,
    delay: DelayPolicy | None = None,
    terminate: Callable[[int], None] = os._exit,
    rng: random.Random | None = None,
) -> FastAPI:
    """Build the lucky-number-app.

    The listener binds right away; until the startup sequencer fires, /ping
    reports the current state with a 503 and /lucky is refused.
    """
    lifecycle = lifecycle or ServiceLifecycle()
    delay = delay or delay_policy_for(settings.delay_mode)
    rng = rng or random.Random()
    sequencer = StartupSequencer(lifecycle, settings.startup_delay_s)
    pod = settings.pod_name or "unknown"

    app = FastAPI(title="lucky-number-app")
    app.state.lifecycle = lifecycle
    app.state.sequencer = sequencer

    @app.on_event("startup")
    def startup() -> None:
        sequencer.start()

    @app.on_event("shutdown")
    def shutdown() -> None:
        sequencer.cancel()

    @app.get("/ping", response_model=PingResponse)
    def ping():
        current = lifecycle.state
        if current is ServiceState.READY:
            return PingResponse(status="ok")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=PingResponse(status=current.value).model_dump(),
        )

    # async on purpose: a blocking delay policy then holds the event loop.
    @app.get("/lucky", response_model=LuckyNumberResponse)
    async def lucky() -> LuckyNumberResponse:
        if not lifecycle.is_ready():
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Service is {lifecycle.state.value}",
            )
        log.info("Received request for lucky number in pod %s...", pod)
        await delay.wait(settings.processing_delay_s)
        number = rng.randint(settings.lucky_min, settings.lucky_max)
        log.info("Generated lucky number: %d in pod %s", number, pod)
        return LuckyNumberResponse(luckyNumber=number)

    @app.get("/crash", response_model=CrashResponse)
    def crash(background: BackgroundTasks) -> CrashResponse:
        log.warning("Crash requested in pod %s, exiting with code %d", pod, settings.crash_exit_code)
        lifecycle.mark_crashed()
        # Runs after the response has been sent.
        background.add_task(terminate, settings.crash_exit_code)
        return CrashResponse()

    return app
