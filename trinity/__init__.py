# -*- coding: utf-8 -*-
"""
FastAPI 应用初始化入口 (Trinity 后台充值服务)
--------------------------------------------
✅ lifespan 模式 (数据库句柄 + 扩展服务的启动与关闭)
✅ 模块自动注册 (蓝图)
✅ 日志 / CORS / 异常 / 配置加载
"""
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from loguru import logger

from trinity.core.config import Settings, init_settings

# ======================================================
# 🧩 环境初始化
# ======================================================
basedir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
env_path = os.path.join(basedir, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)


# ======================================================
# 🧱 注册模块与服务
# ======================================================
def register_blueprints(app: FastAPI):
    """注册 API 模块"""
    from trinity.api import register_blueprint
    register_blueprint(app)

    @app.get("/health", tags=["health"], include_in_schema=False)
    async def health():
        return {"status": "ok"}

    logger.info("✅ 已注册 API 模块: cms")


def register_cors(app: FastAPI):
    """注册 CORS 中间件"""
    from fastapi.middleware.cors import CORSMiddleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def register_exception_handlers(app: FastAPI):
    """注册全局异常"""
    from trinity.core.exception import register_exception_handlers
    register_exception_handlers(app)
    logger.info("✅ 异常处理器已注册")


def register_logger(app: FastAPI, settings: Settings):
    """统一日志系统"""
    from trinity.core.logger import setup_logger
    setup_logger(app, settings)


# ======================================================
# 🧬 lifespan 生命周期管理器
# ======================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """统一管理 startup / shutdown"""
    from trinity.core.db import Database
    from trinity.core.service_manager import ServiceManager

    settings: Settings = app.state.settings

    # ---- startup 阶段 ----
    logger.info("🚀 FastAPI 启动中，正在初始化模块...")

    db = Database(settings.database)
    await db.connect()
    app.state.db = db

    services = ServiceManager(settings)
    await services.init_all()
    app.state.services = services

    # 测试可预先注入自己的通知器
    if getattr(app.state, "notifier", None) is None:
        app.state.notifier = services.get("email")

    logger.info("✅ 所有模块初始化完成，系统启动成功。")

    try:
        yield
    finally:
        # ---- shutdown 阶段 ----
        logger.info("🧹 FastAPI 正在关闭中，清理资源...")
        await services.close_all()
        await db.dispose()


# ======================================================
# 🏗️ 应用工厂
# ======================================================
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """构建 FastAPI 实例并注册所有依赖"""
    from trinity.core.jwt import JWTService

    settings = init_settings(settings=settings)
    # ✅ 根据环境动态关闭 Swagger
    docs_url = "/docs" if settings.app.debug else None
    redoc_url = "/redoc" if settings.app.debug else None
    openapi_url = "/openapi.json" if settings.app.debug else None

    app = FastAPI(
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
        title=settings.app.name,
        version=settings.app.version,
        description="Trinity manual deposit administration API",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.jwt = JWTService(settings)
    app.state.notifier = None

    register_cors(app)
    register_logger(app, settings)
    register_blueprints(app)
    register_exception_handlers(app)

    logger.info(f"✅ Trinity FastAPI 初始化完成 | 环境: {settings.app.env}")
    return app
