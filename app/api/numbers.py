from __future__ import annotations

from fastapi import APIRouter, Query, Request

from app.numbers.service import NumbersService
from app.schemas.numbers import NumbersResponse


router = APIRouter(tags=["numbers"])


def _service(request: Request) -> NumbersService:
    return request.app.state.numbers_service


@router.get("/numbers/{kind}", response_model=NumbersResponse)
async def get_numbers(
    kind: str,
    request: Request,
    window_size: str | None = Query(default=None, alias="windowSize"),
) -> NumbersResponse:
    result = await _service(request).handle(kind, window_size)
    return NumbersResponse.from_result(result)
