# -*- coding: utf-8 -*-
"""
Trinity 后台手工充值模块
---------------------------------------------
✅ 用户列表 / 用户详情（钱包汇总 + 最近充值）
✅ 手工入账（充值记录 + 账本同一事务）
✅ 充值历史 / 统计 / 单笔详情（审计轨迹）
✅ 撤销充值（可选退款）
✅ 提交后异步邮件通知
"""
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from trinity.api.cms.schema.manual_deposit import (
    CancelDepositSchema,
    DepositPageQuery,
    ManualDepositSchema,
    UserPageQuery,
)
from trinity.api.cms.services.manual_deposit_service import ManualDepositService
from trinity.api.cms.services.notification_service import (
    Notifier,
    dispatch_notification,
    get_notifier,
)
from trinity.api.cms.services.user_service import UserService
from trinity.core.db import get_session
from trinity.core.jwt import admin_required
from trinity.core.response import TrinityResponse

rp = APIRouter(prefix="/admin", tags=["管理员-手工充值"])


@rp.get("/users", name="用户列表", dependencies=[Depends(admin_required)])
async def list_users(
        query: UserPageQuery = Depends(),
        session: AsyncSession = Depends(get_session),
):
    items, total = await UserService.list_users(
        session, page=query.page, limit=query.limit, search=query.search
    )
    return TrinityResponse.page(items=items, total=total, page=query.page, limit=query.limit)


@rp.get("/users/{user_id}", name="用户详情", dependencies=[Depends(admin_required)])
async def get_user(user_id: str, session: AsyncSession = Depends(get_session)):
    detail = await UserService.get_user_detail(session, user_id)
    return TrinityResponse.success(data=detail)


@rp.post("/manual-deposit", name="后台手工充值")
async def create_manual_deposit(
        data: ManualDepositSchema,
        background_tasks: BackgroundTasks,
        admin=Depends(admin_required),
        session: AsyncSession = Depends(get_session),
        notifier: Notifier = Depends(get_notifier),
):
    result, notification = await ManualDepositService.create_manual_deposit(session, data, admin)
    if notification is not None:
        background_tasks.add_task(dispatch_notification, notifier, notification)
    return TrinityResponse.success(data=result, msg="Manual deposit created successfully")


@rp.get("/manual-deposits", name="手工充值历史", dependencies=[Depends(admin_required)])
async def list_manual_deposits(
        query: DepositPageQuery = Depends(),
        session: AsyncSession = Depends(get_session),
):
    items, total = await ManualDepositService.list_manual_deposits(session, query)
    return TrinityResponse.page(items=items, total=total, page=query.page, limit=query.limit)


# 需在 /manual-deposits/{deposit_id} 之前注册
@rp.get("/manual-deposits/stats", name="手工充值统计", dependencies=[Depends(admin_required)])
async def manual_deposit_stats(session: AsyncSession = Depends(get_session)):
    stats = await ManualDepositService.get_stats(session)
    return TrinityResponse.success(data=stats)


@rp.get("/manual-deposits/{deposit_id}", name="手工充值详情", dependencies=[Depends(admin_required)])
async def get_manual_deposit(deposit_id: str, session: AsyncSession = Depends(get_session)):
    detail = await ManualDepositService.get_manual_deposit(session, deposit_id)
    return TrinityResponse.success(data=detail)


@rp.put("/manual-deposits/{deposit_id}/cancel", name="撤销手工充值")
async def cancel_manual_deposit(
        deposit_id: str,
        data: CancelDepositSchema,
        background_tasks: BackgroundTasks,
        admin=Depends(admin_required),
        session: AsyncSession = Depends(get_session),
        notifier: Notifier = Depends(get_notifier),
):
    result, notification = await ManualDepositService.cancel_manual_deposit(session, deposit_id, data, admin)
    background_tasks.add_task(dispatch_notification, notifier, notification)
    return TrinityResponse.success(data=result, msg="Manual deposit cancelled successfully")
