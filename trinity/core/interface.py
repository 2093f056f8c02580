# -*- coding: utf-8 -*-
"""
Trinity-Core 接口定义层（Interface Layer）
--------------------------------------------
✅ 提供字段定义和通用方法，不注册到数据库
✅ 由 model 层继承实现实际 ORM 映射
✅ 兼容 SQLAlchemy 2.x 异步 Session
✅ 支持分页、计数、排序
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Type, TypeVar

from sqlalchemy import Column, DateTime, Select, func, select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from trinity.core.db import BaseModel

T = TypeVar("T", bound="BaseCrud")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ======================================================
# 🧩 通用抽象基类
# ======================================================
class BaseCrud(BaseModel):
    """基础 CRUD 抽象类，不绑定表名"""
    __abstract__ = True

    # ======================================================
    # 📄 通用分页查询
    # ======================================================
    @classmethod
    async def paginate(
            cls: Type[T],
            session: AsyncSession,
            *,
            stmt: Optional[Select] = None,
            page: int = 1,
            size: int = 10,
            order_by: Optional[Any] = None,
    ) -> tuple[list[Any], int]:
        """
        📄 通用分页查询
        -------------------------------------------------
        ✅ stmt 为空时默认 select(cls)
        ✅ count 复用同样的 where 条件
        ✅ 默认按 create_time 倒序
        -------------------------------------------------
        返回: (items, total)
        """
        stmt = stmt if stmt is not None else select(cls)

        # 🔹 构造 count 查询（复用 where 条件）
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await session.execute(count_stmt)).scalar() or 0

        # 🔹 排序
        if order_by is None and hasattr(cls, "create_time"):
            order_by = desc(cls.create_time)
        if order_by is not None:
            stmt = stmt.order_by(order_by)

        # 🔹 分页
        offset = max(page - 1, 0) * size
        stmt = stmt.offset(offset).limit(size)

        result = await session.execute(stmt)
        return list(result.unique().scalars().all()), int(total)


# ======================================================
# 🕒 通用时间戳
# ======================================================
class InfoCrud(BaseCrud):
    __abstract__ = True

    create_time = Column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
    update_time = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )
