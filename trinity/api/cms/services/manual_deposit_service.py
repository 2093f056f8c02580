# -*- coding: utf-8 -*-
"""
💰 ManualDepositService — 后台手工充值服务层
负责管理端人工入账、撤销、查询与统计。
所有余额变动统一走 LedgerService，且与充值记录处于同一事务。
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trinity.api.cms.model import AuditEvent, Deposit, User
from trinity.api.cms.schema.audit import (
    AUDIT_SCHEMA_VERSION,
    AuditEventSchema,
    AuditPayload,
    DepositCancelledEvent,
    DepositCreatedEvent,
    dump_payload,
)
from trinity.api.cms.schema.manual_deposit import (
    CancelDepositResultSchema,
    CancelDepositSchema,
    CreditedUserSchema,
    CurrencyStatSchema,
    DepositDetailSchema,
    DepositPageQuery,
    DepositSchema,
    DepositWithUserSchema,
    ManualDepositResultSchema,
    ManualDepositSchema,
    ManualDepositStatsSchema,
    NetworkStatSchema,
    StatsTotalSchema,
    StatusStatSchema,
)
from trinity.api.cms.services.ledger_service import LedgerService
from trinity.api.cms.services.notification_service import Notification
from trinity.core.config import get_current_settings
from trinity.core.enums import DepositStatus, DepositType, LedgerKind
from trinity.core.exception import InvalidState, NotFound, ParameterError
from trinity.core.interface import utcnow

MANUAL = DepositType.MANUAL_ADMIN.value


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _brand() -> str:
    return get_current_settings().email.brand


class ManualDepositService:

    # ======================================
    # 🧾 审计事件（追加写入）
    # ======================================
    @staticmethod
    async def _append_audit(session: AsyncSession, deposit: Deposit, event: AuditPayload, admin: User) -> AuditEvent:
        return await AuditEvent.create(
            session,
            deposit_id=deposit.id,
            event_type=event.event_type,
            version=AUDIT_SCHEMA_VERSION,
            actor_id=admin.id,
            actor_email=admin.email,
            payload=dump_payload(event),
        )

    # ======================================
    # 💵 后台手工充值
    # ======================================
    @staticmethod
    async def create_manual_deposit(
            session: AsyncSession,
            payload: ManualDepositSchema,
            admin: User,
    ) -> Tuple[ManualDepositResultSchema, Optional[Notification]]:
        """
        💰 后台手工给用户入账
        - 充值记录 + 审计事件 + 账本 DEPOSIT 同一事务，任一失败全部回滚
        - newBalance 取自账本返回的快照
        - 返回待发送的通知（由路由在提交后以后台任务发送）
        """
        user = await User.get_or_404(session, payload.user_id, "The specified user does not exist")
        if not user.is_active:
            raise InvalidState("Cannot deposit to inactive user")

        currency, network = payload.currency.value, payload.network.value

        async with Deposit.auto_commit(session):
            deposit = await Deposit.create(
                session,
                user_id=user.id,
                amount=payload.amount,
                currency=currency,
                network=network,
                deposit_type=MANUAL,
                status=DepositStatus.CONFIRMED.value,
                admin_notes=payload.notes or f"Manual deposit by admin {admin.email}",
            )
            await ManualDepositService._append_audit(
                session,
                deposit,
                DepositCreatedEvent(admin_id=admin.id, admin_email=admin.email, processed_at=utcnow()),
                admin,
            )
            snapshot = await LedgerService.apply_wallet_operation(
                session,
                user.id,
                payload.amount,
                LedgerKind.DEPOSIT,
                f"Manual deposit: {payload.amount} {currency} via {network}",
                deposit.id,
            )

        logger.info(
            f"✅ Manual deposit created by admin {admin.email}: user={user.id} amount={payload.amount} "
            f"currency={currency} network={network} deposit={deposit.id}"
        )

        result = ManualDepositResultSchema(
            deposit=DepositSchema.model_validate(deposit),
            user=CreditedUserSchema(
                id=user.id,
                full_name=user.full_name,
                email=user.email,
                new_balance=snapshot.balance,
            ),
        )

        notification = None
        if payload.send_email:
            notification = Notification(
                to=user.email,
                subject=f"Manual Deposit Confirmed - {_brand()}",
                template="manual-deposit-confirmation",
                data={
                    "fullName": user.full_name,
                    "amount": str(payload.amount),
                    "currency": currency,
                    "network": network,
                    "newBalance": str(snapshot.balance),
                    "adminNotes": payload.notes or "Manual deposit processed by administrator",
                },
            )
        return result, notification

    # ======================================
    # 📄 手工充值历史
    # ======================================
    @staticmethod
    async def list_manual_deposits(
            session: AsyncSession,
            query: DepositPageQuery,
    ) -> Tuple[List[DepositWithUserSchema], int]:
        stmt = select(Deposit).where(Deposit.deposit_type == MANUAL)
        if query.user_id:
            stmt = stmt.where(Deposit.user_id == query.user_id)
        if query.date_from:
            stmt = stmt.where(Deposit.create_time >= _as_utc(query.date_from))
        if query.date_to:
            stmt = stmt.where(Deposit.create_time <= _as_utc(query.date_to))

        deposits, total = await Deposit.paginate(session, stmt=stmt, page=query.page, size=query.limit)
        return [DepositWithUserSchema.model_validate(d) for d in deposits], total

    # ======================================
    # 📊 统计
    # ======================================
    @staticmethod
    async def get_stats(session: AsyncSession) -> ManualDepositStatsSchema:
        manual = Deposit.deposit_type == MANUAL
        amount_sum = func.coalesce(func.sum(Deposit.amount), 0)

        total_amount, total_count = (await session.execute(
            select(amount_sum, func.count(Deposit.id)).where(manual)
        )).one()

        async def grouped(column):
            rows = await session.execute(
                select(column, amount_sum, func.count(Deposit.id))
                .where(manual)
                .group_by(column)
                .order_by(column)
            )
            return [(key, Decimal(str(amount)), int(count)) for key, amount, count in rows.all()]

        return ManualDepositStatsSchema(
            total=StatsTotalSchema(amount=Decimal(str(total_amount)), count=int(total_count)),
            by_currency=[
                CurrencyStatSchema(currency=k, amount=a, count=c) for k, a, c in await grouped(Deposit.currency)
            ],
            by_network=[
                NetworkStatSchema(network=k, amount=a, count=c) for k, a, c in await grouped(Deposit.network)
            ],
            by_status=[
                StatusStatSchema(status=k, amount=a, count=c) for k, a, c in await grouped(Deposit.status)
            ],
        )

    # ======================================
    # 🔍 单笔详情（含审计轨迹）
    # ======================================
    @staticmethod
    async def get_manual_deposit(session: AsyncSession, deposit_id: str) -> DepositDetailSchema:
        deposit = await Deposit.get(session, deposit_id)
        if not deposit or not deposit.is_manual:
            raise NotFound("The specified manual deposit does not exist")

        events = await session.execute(
            select(AuditEvent).where(AuditEvent.deposit_id == deposit.id).order_by(AuditEvent.id)
        )
        detail = DepositDetailSchema.model_validate(deposit)
        detail.audit_trail = [AuditEventSchema.model_validate(e) for e in events.scalars().all()]
        return detail

    # ======================================
    # 💸 撤销手工充值
    # ======================================
    @staticmethod
    async def cancel_manual_deposit(
            session: AsyncSession,
            deposit_id: str,
            payload: CancelDepositSchema,
            admin: User,
    ) -> Tuple[CancelDepositResultSchema, Notification]:
        """
        💸 撤销后台手工充值
        - 仅 MANUAL_ADMIN 且未撤销的记录可撤销
        - 状态比较并更新，保证并发下只有一次撤销成功
        - refundAmount > 0 时记一笔账本 REFUND，与状态变更同一事务
        """
        deposit = await Deposit.get_or_404(session, deposit_id, "The specified deposit does not exist")
        if not deposit.is_manual:
            raise InvalidState("Only manual admin deposits can be cancelled")
        if deposit.is_cancelled:
            raise InvalidState("This deposit has already been cancelled")

        refund = payload.refund_amount or Decimal("0")
        if refund > deposit.amount:
            raise ParameterError(
                "Refund amount cannot exceed the deposit amount",
                details=[{"field": "refundAmount", "msg": f"must be <= {deposit.amount}"}],
            )

        user = deposit.user
        now = utcnow()
        snapshot = None

        async with Deposit.auto_commit(session):
            notes = f"{deposit.admin_notes or ''}\n\nCANCELLED: {payload.reason} (by admin {admin.email})"
            result = await session.execute(
                update(Deposit)
                .where(Deposit.id == deposit.id, Deposit.status != DepositStatus.CANCELLED.value)
                .values(status=DepositStatus.CANCELLED.value, admin_notes=notes, update_time=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InvalidState("This deposit has already been cancelled")

            if refund > 0:
                snapshot = await LedgerService.apply_wallet_operation(
                    session,
                    deposit.user_id,
                    refund,
                    LedgerKind.REFUND,
                    f"Refund for cancelled manual deposit: {payload.reason}",
                    deposit.id,
                )

            await ManualDepositService._append_audit(
                session,
                deposit,
                DepositCancelledEvent(
                    reason=payload.reason,
                    cancelled_by=admin.email,
                    cancelled_at=now,
                    refund_amount=refund,
                    ledger_entry_id=snapshot.entry_id if snapshot else None,
                ),
                admin,
            )
            await session.refresh(deposit)

        if snapshot is None:
            snapshot = await LedgerService.get_snapshot(session, deposit.user_id)
        new_balance = snapshot.balance if snapshot else Decimal("0")

        logger.info(
            f"🛑 Manual deposit {deposit.id} cancelled by admin {admin.email}: "
            f"reason={payload.reason!r} refund={refund}"
        )

        result = CancelDepositResultSchema.model_validate(deposit)
        result.refund_amount = refund
        result.new_balance = new_balance

        notification = Notification(
            to=user.email,
            subject=f"Deposit Cancelled - {_brand()}",
            template="deposit-cancelled",
            data={
                "fullName": user.full_name,
                "amount": str(deposit.amount),
                "currency": deposit.currency,
                "reason": payload.reason,
                "refundAmount": str(refund),
                "newBalance": str(new_balance),
            },
        )
        return result, notification
