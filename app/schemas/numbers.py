from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.numbers.window import MergeResult


class NumbersResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    window_prev_state: list[int] = Field(alias="windowPrevState")
    window_curr_state: list[int] = Field(alias="windowCurrState")
    numbers: list[int]
    avg: float

    @classmethod
    def from_result(cls, result: MergeResult) -> "NumbersResponse":
        return cls(
            window_prev_state=result.prev_state,
            window_curr_state=result.curr_state,
            numbers=result.numbers,
            avg=result.average,
        )


class HealthResponse(BaseModel):
    status: str
    started_at: datetime
    uptime_seconds: float
