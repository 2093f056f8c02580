# -*- coding: utf-8 -*-
"""
@Time    : 2025/12/02
@Author  : Pedro
@File    : config.py
@Software: PyCharm

Trinity-Core Config System
---------------------------------------------------
✅ 自动加载根目录 .env
✅ YAML 支持 ${ENV_VAR} 占位符解析
✅ 自动根据 APP_ENV 加载 development.yaml / production.yaml
✅ YAML 作为配置源，TRINITY_ 环境变量可逐键覆盖
✅ 显式传入的配置段优先于 YAML（测试注入）
✅ 线程安全单例
"""

import os
import re
import threading
from datetime import timedelta
from functools import lru_cache
from typing import Optional, Any, Dict, Tuple, Type

import yaml
from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


# ======================================================
# 🔧 加载 .env 文件
# ======================================================
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))
ENV_PATH = os.path.join(BASE_DIR, ".env")
if os.path.exists(ENV_PATH):
    load_dotenv(ENV_PATH, override=False)


# ======================================================
# 🧩 基础配置模型
# ======================================================
class AppConfig(BaseModel):
    name: str = "Trinity-Core"
    version: str = "0.1.0"
    env: str = "development"
    debug: bool = True
    log_level: str = "DEBUG"
    log_path: Optional[str] = "logs/app_{time:YYYY-MM-DD}.log"
    host: str = "127.0.0.1"
    port: int = 8080


class DatabaseConfig(BaseModel):
    url: str = "sqlite+aiosqlite:///./trinity.db"
    echo: bool = False
    auto_create: bool = True


class AuthConfig(BaseModel):
    secret: str = "Trinity-Core"
    algorithm: str = "HS256"
    access_expires_in: int = 3600

    @property
    def access_timedelta(self) -> timedelta:
        return timedelta(seconds=self.access_expires_in)


class EmailConfig(BaseModel):
    enabled: bool = False
    endpoint: str = "https://api.ycloud.com/v2/emails"
    api_key: Optional[str] = None
    sender: str = "no-reply@trinitymetrobike.com"
    brand: str = "Trinity Metro Bike"
    timeout: float = 15.0


# ======================================================
# 🧠 工具函数
# ======================================================
def deep_merge(base: dict, override: dict) -> dict:
    """递归合并字典"""
    result = base.copy()
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def substitute_env_vars(value: Any) -> Any:
    """解析 ${VAR} 变量"""
    if isinstance(value, str):
        for var in re.findall(r"\$\{([^}^{]+)\}", value):
            env_val = os.getenv(var)
            if env_val:
                value = value.replace(f"${{{var}}}", env_val)
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]
    return value


def load_yaml_config(env: str) -> Dict[str, Any]:
    """加载 YAML 配置文件并解析环境变量"""
    config_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "../config"))
    file_path = os.path.join(config_dir, f"{env}.yaml")
    if not os.path.exists(file_path):
        logger.warning(f"⚠️ Config file not found: {file_path}, using defaults")
        return {}

    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    logger.info(f"✅ Loaded config file: {file_path}")
    return substitute_env_vars(data)


# ======================================================
# 📄 YAML 配置源（优先级低于环境变量）
# ======================================================
class YamlConfigSource(PydanticBaseSettingsSource):
    """按 APP_ENV 读取 trinity/config/<env>.yaml，作为 pydantic-settings 的一个配置源"""

    def __init__(self, settings_cls: Type[BaseSettings], env: Optional[str] = None):
        super().__init__(settings_cls)
        self.data = load_yaml_config(env or os.getenv("APP_ENV", "development"))

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        return self.data.get(field_name), field_name, False

    def __call__(self) -> Dict[str, Any]:
        return {
            name: section
            for name, section in self.data.items()
            if name in self.settings_cls.model_fields and section
        }


# ======================================================
# 🌍 Settings 主配置类
# ======================================================
class Settings(BaseSettings):
    """
    配置优先级（高 -> 低）：
    显式传入 > TRINITY_ 环境变量 > .env > <APP_ENV>.yaml > 默认值
    同一配置段内逐键深度合并，显式传入的配置段整体生效
    """
    app: AppConfig = AppConfig()
    database: DatabaseConfig = DatabaseConfig()
    auth: AuthConfig = AuthConfig()
    email: EmailConfig = EmailConfig()

    model_config = SettingsConfigDict(
        env_prefix="TRINITY_",
        env_nested_delimiter="__",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
            cls,
            settings_cls: Type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,
            file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSource(settings_cls),
            file_secret_settings,
        )

    def summary(self):
        """输出配置概要（隐藏密钥）"""
        logger.info(f"🌍 [{self.app.env}] {self.app.name} config overview")
        for name in type(self).model_fields:
            value = getattr(self, name)
            data = value.model_dump(exclude={"secret", "api_key"})
            logger.debug(f"🧩 {name}: {data}")


# ======================================================
# 🧷 单例实例
# ======================================================
_settings_instance: Optional[Settings] = None
_settings_lock = threading.Lock()


@lru_cache()
def get_settings() -> Settings:
    """加载配置（带缓存）"""
    s = Settings()
    s.summary()
    return s


def get_current_settings() -> Settings:
    """线程安全全局访问"""
    global _settings_instance
    if _settings_instance is None:
        with _settings_lock:
            if _settings_instance is None:
                _settings_instance = get_settings()
    return _settings_instance


def init_settings(settings: Optional[Settings] = None) -> Settings:
    """显式传入的 settings 成为全局配置；否则返回当前全局配置"""
    global _settings_instance
    if settings is not None:
        with _settings_lock:
            _settings_instance = settings
        return settings
    return get_current_settings()
