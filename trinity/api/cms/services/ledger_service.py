"""
# @Time    : 2025/12/05 21:37
# @Author  : Pedro
# @File    : ledger_service.py
# @Software: PyCharm
钱包账本服务：所有余额变动的唯一入口
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from trinity.api.cms.model import BalanceLog, Wallet
from trinity.core.enums import LedgerKind
from trinity.core.exception import InvalidState, ParameterError
from trinity.core.interface import utcnow


@dataclass(frozen=True)
class WalletSnapshot:
    """账本变动后的钱包快照，调用方以此为准，不再二次读取余额"""
    user_id: str
    balance: Decimal
    total_deposits: Decimal
    total_withdrawals: Decimal
    entry_id: Optional[int] = None


class LedgerService:

    @staticmethod
    def _normalize_amount(amount) -> Decimal:
        try:
            amt = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, ValueError, TypeError):
            raise ParameterError(f"Invalid ledger amount: {amount}")
        if not amt.is_finite() or amt <= 0:
            raise ParameterError("Ledger amount must be a positive number")
        return amt

    @staticmethod
    async def _ensure_wallet(session: AsyncSession, user_id: str) -> None:
        """
        无钱包 -> 创建（与触发记录处于同一事务）
        INSERT ... ON CONFLICT DO NOTHING：并发的首次入账只有一条插入生效，其余直接走后续 UPDATE
        """
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(Wallet)
        elif dialect == "sqlite":
            stmt = sqlite_insert(Wallet)
        else:
            raise NotImplementedError(f"Unsupported database dialect: {dialect}")

        now = utcnow()
        await session.execute(
            stmt.values(
                user_id=user_id,
                balance=Decimal("0"),
                total_deposits=Decimal("0"),
                total_withdrawals=Decimal("0"),
                create_time=now,
                update_time=now,
            ).on_conflict_do_nothing(index_elements=[Wallet.user_id])
        )

    @staticmethod
    async def apply_wallet_operation(
            session: AsyncSession,
            user_id: str,
            amount,
            kind: LedgerKind,
            memo: str,
            provenance_id: Optional[str] = None,
    ) -> WalletSnapshot:
        """
        原子地对用户钱包执行一次账本操作，并写入 BalanceLog
        - 不提交事务：必须在调用方的 auto_commit 单元内执行
        - 钱包更新为单条 UPDATE ... RETURNING，并发请求在数据库层串行
        - DEPOSIT：balance += amount，total_deposits += amount
        - WITHDRAWAL：balance -= amount，total_withdrawals += amount，余额不足拒绝
        - REFUND：balance -= amount（撤销已入账金额），累计值不变，余额不足拒绝
        """
        kind = LedgerKind(kind)
        amt = LedgerService._normalize_amount(amount)

        await LedgerService._ensure_wallet(session, user_id)

        delta = amt * kind.direction
        values = {"balance": Wallet.balance + delta}
        if kind is LedgerKind.DEPOSIT:
            values["total_deposits"] = Wallet.total_deposits + amt
        elif kind is LedgerKind.WITHDRAWAL:
            values["total_withdrawals"] = Wallet.total_withdrawals + amt

        stmt = update(Wallet).where(Wallet.user_id == user_id)
        if delta < 0:
            # 余额不足时不匹配任何行
            stmt = stmt.where(Wallet.balance >= amt)
        stmt = (
            stmt.values(**values)
            .returning(Wallet.balance, Wallet.total_deposits, Wallet.total_withdrawals)
        )
        row = (await session.execute(stmt)).first()
        if row is None:
            raise InvalidState(f"Insufficient wallet balance for {kind.value.lower()} of {amt}")

        balance, total_deposits, total_withdrawals = row

        # ✅ 写账本流水
        entry = BalanceLog(
            user_id=user_id,
            kind=kind.value,
            amount=amt,
            delta=delta,
            balance_after=balance,
            reference_id=provenance_id,
            memo=memo,
        )
        session.add(entry)
        await session.flush()

        logger.debug(
            f"📒 ledger {kind.value} user={user_id} amount={amt} "
            f"balance_after={balance} ref={provenance_id}"
        )
        return WalletSnapshot(
            user_id=user_id,
            balance=Decimal(str(balance)),
            total_deposits=Decimal(str(total_deposits)),
            total_withdrawals=Decimal(str(total_withdrawals)),
            entry_id=entry.id,
        )

    @staticmethod
    async def get_snapshot(session: AsyncSession, user_id: str) -> Optional[WalletSnapshot]:
        """读取当前钱包（直接查库，不做缓存）"""
        row = (await session.execute(
            select(Wallet.balance, Wallet.total_deposits, Wallet.total_withdrawals)
            .where(Wallet.user_id == user_id)
        )).first()
        if row is None:
            return None
        return WalletSnapshot(
            user_id=user_id,
            balance=Decimal(str(row[0])),
            total_deposits=Decimal(str(row[1])),
            total_withdrawals=Decimal(str(row[2])),
        )
