from __future__ import annotations

from pydantic import BaseModel, Field


class LuckyNumberResponse(BaseModel):
    luckyNumber: int = Field(..., description="Generated number in the configured closed range")


class PingResponse(BaseModel):
    status: str = Field(..., description="ok once ready, otherwise the current lifecycle state")


class CrashResponse(BaseModel):
    message: str = "Server will crash now!"
