import importlib
import pkgutil
import time

from fastapi import APIRouter
from loguru import logger


def create_cms() -> APIRouter:
    """
    自动扫描 trinity.api.cms 下所有包含 rp 对象的模块，并注册到 router_cms
    """
    router_cms = APIRouter(prefix="/cms", tags=["cms"])

    package_name = "trinity.api.cms"
    package = importlib.import_module(package_name)

    start_time = time.time()
    skip_modules = {"__init__", "model", "schema", "services"}

    for _, module_name, is_pkg in pkgutil.iter_modules(package.__path__):
        if is_pkg or module_name in skip_modules:
            continue

        module = importlib.import_module(f"{package_name}.{module_name}")
        rp = getattr(module, "rp", None)
        if rp is None:
            logger.warning(f"⚠️ 模块 {module_name:<12} 未定义 rp 对象，已跳过。")
            continue
        router_cms.include_router(rp)
        logger.info(f"✅ 已注册子模块: {module_name:<16} | prefix={rp.prefix or '/'} | routes={len(rp.routes)}")

    elapsed = (time.time() - start_time) * 1000
    logger.info(f"🌿 cms 子模块注册完成，耗时 {elapsed:.2f} ms")
    return router_cms
