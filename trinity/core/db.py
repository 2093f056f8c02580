# -*- coding: utf-8 -*-
"""
Trinity-Core 异步 ORM 基类
---------------------------------------------
✅ 异步 CRUD 接口（显式传入 session）
✅ auto_commit() 自动事务上下文
✅ get / get_or_404
✅ Database 句柄：启动时构建 engine / session_factory，关闭时释放
✅ 兼容 FastAPI 生命周期 + 依赖注入
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional, Type, TypeVar, AsyncGenerator

from fastapi import Request
from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base, declared_attr

from trinity.core.config import DatabaseConfig
from trinity.core.exception import NotFound

# ======================================================
# ⚙️ ORM Base 定义
# ======================================================
Base = declarative_base()
T = TypeVar("T", bound="BaseModel")


def generate_uuid() -> str:
    return str(uuid.uuid4())


# ======================================================
# ⚙️ Trinity-Core ORM BaseModel
# ======================================================
class BaseModel(Base):
    __abstract__ = True

    # -----------------------------------------
    # 🧩 自动表名
    # -----------------------------------------
    @declared_attr.directive
    def __tablename__(cls) -> str:
        """驼峰转下划线"""
        name = cls.__name__
        return "".join(["_" + i.lower() if i.isupper() else i for i in name]).lstrip("_")

    # -----------------------------------------
    # 🔍 通用异步查询
    # -----------------------------------------
    @classmethod
    async def get(cls: Type[T], session: AsyncSession, id: Any) -> Optional[T]:
        return await session.get(cls, id)

    @classmethod
    async def get_or_404(cls: Type[T], session: AsyncSession, id: Any, msg: Optional[str] = None) -> T:
        instance = await cls.get(session, id)
        if not instance:
            raise NotFound(msg or f"{cls.__name__} not found")
        return instance

    # -----------------------------------------
    # ✏️ 写入（不提交，由 auto_commit 统一提交）
    # -----------------------------------------
    @classmethod
    async def create(cls: Type[T], session: AsyncSession, **data) -> T:
        obj = cls(**data)
        session.add(obj)
        await session.flush()
        return obj

    # -----------------------------------------
    # 🔒 自动事务上下文
    # -----------------------------------------
    @staticmethod
    @asynccontextmanager
    async def auto_commit(session: AsyncSession):
        try:
            yield
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ======================================================
# ⚙️ Database 句柄（engine + session 工厂）
# ======================================================
class Database:
    """
    进程级数据库句柄
    - create_app 的 lifespan 中构建 & connect()
    - 挂到 app.state.db，路由通过 get_session 依赖获取会话
    - shutdown 时 dispose()
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    async def connect(self) -> None:
        self.engine = create_async_engine(self.config.url, echo=self.config.echo, future=True)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False, class_=AsyncSession)
        if self.config.auto_create:
            await self.create_all()
        logger.info(f"🗄️ Database connected: {self.engine.url.render_as_string(hide_password=True)}")

    async def create_all(self, drop: bool = False) -> None:
        # 注册所有模型到 metadata
        import trinity.api.cms.model  # noqa: F401

        async with self.engine.begin() as conn:
            if drop:
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("🧹 Database engine disposed")
        self.engine = None
        self.session_factory = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        if self.session_factory is None:
            raise RuntimeError("Database is not connected")
        async with self.session_factory() as session:
            yield session


# ======================================================
# 🧩 FastAPI 依赖：每个请求一个会话
# ======================================================
async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    db: Database = request.app.state.db
    async with db.session() as session:
        yield session
