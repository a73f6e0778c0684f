from __future__ import annotations

import asyncio
import time


class DelayPolicy:
    """How the backend spends its simulated processing time."""

    name = "base"

    async def wait(self, seconds: float) -> None:
        raise NotImplementedError


class BlockingDelay(DelayPolicy):
    """Busy-wait on the event loop thread.

    Nothing else on the worker runs until the wait is over, so concurrent
    requests (including /ping and /crash) queue up behind it.
    """

    name = "blocking"

    async def wait(self, seconds: float) -> None:
        deadline = time.monotonic() + seconds
        while time.monotonic() < deadline:
            pass


class NonBlockingDelay(DelayPolicy):
    """Suspend only the current request; other requests keep being served."""

    name = "nonblocking"

    async def wait(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


def delay_policy_for(mode: str) -> DelayPolicy:
    if mode == "blocking":
        return BlockingDelay()
    if mode == "nonblocking":
        return NonBlockingDelay()
    raise ValueError(f"Unknown delay mode: {mode!r}")
