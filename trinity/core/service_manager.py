"""
Trinity-Core | 通用服务注册与动态加载模块
------------------------------------
✅ 自动扫描 trinity/extension 下的所有服务类
✅ 每个服务继承 BaseService 即可自动注册
✅ 支持 FastAPI 生命周期自动启动与关闭
"""

import importlib
import inspect
import pkgutil
from typing import Dict, Iterator

from loguru import logger

from trinity.core.config import Settings


class BaseService:
    """所有服务模块的基类"""
    name: str = "base"

    def __init__(self, settings: Settings):
        self.settings = settings

    async def init(self):
        """初始化逻辑"""
        raise NotImplementedError

    async def close(self):
        """关闭逻辑"""
        pass


class ServiceManager:
    """统一的服务管理器（每个应用实例一个，挂在 app.state.services）"""

    def __init__(self, settings: Settings, package: str = "trinity.extension"):
        self.settings = settings
        self.package = package
        self._services: Dict[str, BaseService] = {}

    def _iter_modules(self) -> Iterator[str]:
        root = importlib.import_module(self.package)
        for info in pkgutil.walk_packages(root.__path__, prefix=f"{self.package}."):
            yield info.name

    # ======================================================
    # 初始化加载
    # ======================================================
    async def init_all(self):
        """递归扫描 extension 下的服务模块"""
        for module_name in self._iter_modules():
            module = importlib.import_module(module_name)
            for _, obj in inspect.getmembers(module, inspect.isclass):
                if not issubclass(obj, BaseService) or obj is BaseService or obj.name in self._services:
                    continue
                instance = obj(self.settings)
                await instance.init()
                self._services[obj.name] = instance
                logger.info(f"✅ Service loaded: {obj.name}")

    # ======================================================
    # 获取服务
    # ======================================================
    def get(self, name: str) -> BaseService:
        service = self._services.get(name)
        if not service:
            raise KeyError(f"❌ Service '{name}' is not registered")
        return service

    # ======================================================
    # 关闭所有服务
    # ======================================================
    async def close_all(self):
        """关闭所有服务"""
        for name, service in self._services.items():
            try:
                await service.close()
                logger.info(f"🛑 Service closed: {name}")
            except Exception as e:
                logger.warning(f"⚠️ Failed to close service {name}: {e}")
        self._services.clear()
