# -*- coding: utf-8 -*-
"""
Trinity FastAPI 启动文件
--------------------------------
入口职责：
✅ 调用 create_app()
✅ 启动 uvicorn
"""

import logging
import uvicorn
from trinity import create_app
from trinity.core.config import get_current_settings

settings = get_current_settings()
app = create_app(settings)

if __name__ == "__main__":
    logging.getLogger("uvicorn.error").setLevel(logging.ERROR)
    print("🚀 Trinity FastAPI 正在启动 ...")

    uvicorn.run(
        "starter:app",
        host=settings.app.host,
        port=settings.app.port,
        reload=settings.app.debug,
    )
