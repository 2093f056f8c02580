# -*- coding: utf-8 -*-
"""
# @Time    : 2025/12/05 00:35
# @Author  : Pedro
# @File    : user_service.py
# @Software: PyCharm
"""
from typing import List, Optional, Tuple

from sqlalchemy import desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from trinity.api.cms.model import Deposit, User
from trinity.api.cms.schema.manual_deposit import (
    DepositBriefSchema,
    UserDetailSchema,
    UserSummarySchema,
)

RECENT_DEPOSIT_LIMIT = 10


def escape_like(keyword: str) -> str:
    return keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class UserService:
    """
    🧩 后台用户查询服务
    ------------------------------------------------
    ✅ 仅列出激活用户，支持姓名 / 邮箱 / 手机号模糊搜索
    ✅ 附带钱包汇总
    ✅ 用户详情附带最近 10 笔充值
    """

    @staticmethod
    async def list_users(
        session: AsyncSession,
        *,
        page: int = 1,
        limit: int = 50,
        search: Optional[str] = None,
    ) -> Tuple[List[UserSummarySchema], int]:
        stmt = select(User).where(User.is_active.is_(True))
        if search:
            pattern = f"%{escape_like(search)}%"
            stmt = stmt.where(or_(
                User.full_name.ilike(pattern, escape="\\"),
                User.email.ilike(pattern, escape="\\"),
                User.phone.ilike(pattern, escape="\\"),
            ))

        users, total = await User.paginate(session, stmt=stmt, page=page, size=limit)
        return [UserSummarySchema.model_validate(u) for u in users], total

    @staticmethod
    async def get_user_detail(session: AsyncSession, user_id: str) -> UserDetailSchema:
        user = await User.get_or_404(session, user_id, "The specified user does not exist")

        result = await session.execute(
            select(Deposit)
            .where(Deposit.user_id == user.id)
            .order_by(desc(Deposit.create_time))
            .limit(RECENT_DEPOSIT_LIMIT)
        )
        detail = UserDetailSchema.model_validate(user)
        detail.recent_deposits = [DepositBriefSchema.model_validate(d) for d in result.scalars().all()]
        return detail
