# -*- coding: utf-8 -*-
"""
# @Time    : 2025/12/07 10:05
# @Author  : Pedro
# @File    : init.py
# @Software: PyCharm

python -m trinity.cli.db.init [--force] [--email admin@example.com] [--name Root]
建表 + 创建管理员 + 打印管理员访问令牌
"""
import argparse
import asyncio
from decimal import Decimal

from sqlalchemy import select

from trinity.api.cms.model import User, Wallet
from trinity.core.config import get_current_settings
from trinity.core.db import Database
from trinity.core.enums import UserRole
from trinity.core.jwt import JWTService


async def init_db(force: bool = False, email: str = "admin@trinitymetrobike.com", name: str = "Root") -> None:
    settings = get_current_settings()
    db = Database(settings.database)
    await db.connect()
    try:
        if force:
            print("⚠️ Dropping all tables ...")
        print("✅ Creating tables ...")
        await db.create_all(drop=force)

        async with db.session() as session:
            admin = await session.scalar(select(User).where(User.email == email))
            if admin is None:
                print(f"🚀 创建管理员 {email} ...")
                admin = User(full_name=name, email=email, role=UserRole.ADMIN.value, is_active=True)
                session.add(admin)
                await session.flush()
                session.add(Wallet(user_id=admin.id, balance=Decimal("0")))
                await session.commit()
            elif not admin.is_admin:
                print(f"❌ 用户 {email} 已存在且不是管理员")
                return
            else:
                print(f"ℹ️ 管理员 {email} 已存在")

            token = JWTService(settings).create_access_token(admin)
            print("✅ 管理员初始化完成")
            print(f"🔑 Access token: {token}")
    finally:
        await db.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialise the Trinity database")
    parser.add_argument("--force", action="store_true", help="drop and recreate all tables")
    parser.add_argument("--email", default="admin@trinitymetrobike.com")
    parser.add_argument("--name", default="Root")
    args = parser.parse_args()
    asyncio.run(init_db(force=args.force, email=args.email, name=args.name))
