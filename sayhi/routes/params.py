# sayhi/routes/params.py
from typing import Optional

from fastapi import Query, Response

from sayhi.errors import ValidationError
from sayhi.repositories import Page
from sayhi.schemas import MAX_INT


def strip_legacy_id(raw: str) -> str:
    # 移动端发的是 /api/v1/users/:<id>
    return raw[1:] if raw.startswith(":") else raw


def message_id(raw: str) -> int:
    try:
        value = int(strip_legacy_id(raw))
    except ValueError:
        raise ValidationError(f"invalid message id {raw}")
    if not 1 <= value <= MAX_INT:
        raise ValidationError(f"invalid message id {raw}")
    return value


def paging(default_order: str, default_end: int = 10):
    """分页依赖，默认排序方向由各接口决定"""

    def dependency(
        start: int = Query(0, ge=0, le=MAX_INT),
        end: int = Query(default_end, ge=1, le=MAX_INT),
        sort: str = Query("create_time"),
        order: Optional[str] = Query(None),
    ) -> Page:
        return Page(start=start, end=end, sort=sort, order=order or default_order)

    return dependency


def listing(response: Response, items, count: int) -> dict:
    response.headers["x-total-count"] = str(count)
    return {"errno": 0, "success": True, "data": items, "count": count}


def ok(data=None) -> dict:
    return {"errno": 0, "success": True, "data": data}
