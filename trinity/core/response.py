# @Time    : 2025/12/03 01:30
# @Author  : Pedro
# @File    : response.py
# @Software: PyCharm
"""
Trinity-Core 通用响应模型（ORM兼容 + 分页支持 + Decimal安全）
✅ 统一响应封装：success / page
✅ 自动识别 ORM / Pydantic / dict / list
✅ Decimal, datetime, bytes 全兼容
"""

import datetime
import json
import math
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.responses import JSONResponse


# =========================================================
# ✅ 通用序列化函数
# =========================================================
def serialize(data: Any) -> Any:
    """递归序列化各种复杂对象到 JSON 安全格式"""
    if isinstance(data, (datetime.datetime, datetime.date)):
        return data.isoformat()

    if isinstance(data, Decimal):
        return float(data)

    if isinstance(data, (bytes, bytearray)):
        return data.decode("utf-8", errors="ignore")

    if isinstance(data, set):
        return list(data)

    if isinstance(data, BaseModel):
        return serialize(data.model_dump(by_alias=True))

    if hasattr(data, "__table__"):  # SQLAlchemy ORM
        return {c.key: serialize(getattr(data, c.key)) for c in data.__table__.columns}

    if isinstance(data, (list, tuple)):
        return [serialize(i) for i in data]

    if isinstance(data, dict):
        return {k: serialize(v) for k, v in data.items()}

    return data


# =========================================================
# ✅ camelCase 输出 schema 基类
# =========================================================
class CamelSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelSchema):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "Pagination":
        total_pages = math.ceil(total_count / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total_count=total_count,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


# =========================================================
# ✅ Trinity JSON Response
# =========================================================
class TrinityJSONResponse(JSONResponse):
    """统一 JSONResponse 编码（UTF-8 + 禁止 ASCII 转义）"""
    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")


class TrinityResponse:

    @classmethod
    def success(
        cls,
        data: Optional[Any] = None,
        msg: Optional[str] = None,
        status_code: int = 200,
    ) -> TrinityJSONResponse:
        """统一成功响应"""
        payload = {"success": True}
        if msg:
            payload["message"] = msg
        payload["data"] = serialize(data)
        return TrinityJSONResponse(content=payload, status_code=status_code)

    @classmethod
    def page(
        cls,
        *,
        items: Any,
        total: int,
        page: int,
        limit: int,
    ) -> TrinityJSONResponse:
        """分页统一输出"""
        payload = {
            "success": True,
            "data": serialize(items or []),
            "pagination": Pagination.build(page, limit, total).model_dump(by_alias=True),
        }
        return TrinityJSONResponse(content=payload)
