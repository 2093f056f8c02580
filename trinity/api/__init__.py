"""
API 注册入口
"""
from trinity.api.cms import create_cms


def register_blueprint(app):
    app.include_router(create_cms())
