"""
# @Time    : 2025/12/04 09:42
# @Author  : Pedro
# @File    : manual_deposit.py
# @Software: PyCharm
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional
from uuid import UUID

from fastapi import Query
from pydantic import Field, field_validator

from trinity.api.cms.schema.audit import AuditEventSchema
from trinity.core.enums import Currency, Network
from trinity.core.response import CamelSchema


def _to_decimal(v):
    if v is None or (isinstance(v, str) and not v.strip()):
        return v
    if isinstance(v, bool):
        raise ValueError("Amount must be a number")
    try:
        d = Decimal(str(v).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {v}")
    if not d.is_finite():
        raise ValueError("Amount must be a finite number")
    return d


# ======================================================
# 📥 请求参数
# ======================================================
class ManualDepositSchema(CamelSchema):
    """后台手工充值参数"""
    user_id: str = Field(..., min_length=1, description="用户ID")
    amount: Decimal = Field(..., gt=0, max_digits=38, decimal_places=8, description="充值金额，必须为正数")
    currency: Currency
    network: Network
    notes: Optional[str] = Field(default=None, max_length=500)
    send_email: bool = True

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v):
        return _to_decimal(v)

    @field_validator("user_id", mode="before")
    @classmethod
    def strip_user_id(cls, v):
        return v.strip() if isinstance(v, str) else v


class CancelDepositSchema(CamelSchema):
    """撤销手工充值参数"""
    reason: str = Field(..., max_length=500)
    refund_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=38, decimal_places=8)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str):
        if not v.strip():
            raise ValueError("Cancellation reason is required")
        return v.strip()

    @field_validator("refund_amount", mode="before")
    @classmethod
    def validate_refund_amount(cls, v):
        return _to_decimal(v)


class UserPageQuery:
    def __init__(
            self,
            page: int = Query(1, ge=1),
            limit: int = Query(50, ge=1, le=100),
            search: Optional[str] = Query(None, max_length=100),
    ):
        self.page = page
        self.limit = limit
        self.search = search.strip() if search else None


class DepositPageQuery:
    def __init__(
            self,
            page: int = Query(1, ge=1),
            limit: int = Query(20, ge=1, le=100),
            user_id: Optional[UUID] = Query(None, alias="userId"),
            date_from: Optional[datetime] = Query(None, alias="dateFrom"),
            date_to: Optional[datetime] = Query(None, alias="dateTo"),
    ):
        self.page = page
        self.limit = limit
        self.user_id = str(user_id) if user_id else None
        self.date_from = date_from
        self.date_to = date_to


# ======================================================
# 📤 响应结构
# ======================================================
class WalletSummarySchema(CamelSchema):
    balance: Decimal = Decimal("0")
    total_deposits: Decimal = Decimal("0")
    total_withdrawals: Decimal = Decimal("0")


class UserSummarySchema(CamelSchema):
    id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    is_active: bool
    create_time: datetime
    wallet: Optional[WalletSummarySchema] = None


class DepositBriefSchema(CamelSchema):
    id: str
    amount: Decimal
    currency: str
    network: str
    status: str
    deposit_type: str
    create_time: datetime
    admin_notes: Optional[str] = None


class UserDetailSchema(UserSummarySchema):
    recent_deposits: List[DepositBriefSchema] = []


class DepositOwnerSchema(CamelSchema):
    id: str
    full_name: str
    email: str


class DepositSchema(CamelSchema):
    id: str
    user_id: str
    amount: Decimal
    currency: str
    network: str
    deposit_type: str
    status: str
    tx_hash: Optional[str] = None
    admin_notes: Optional[str] = None
    create_time: datetime
    update_time: Optional[datetime] = None


class DepositWithUserSchema(DepositSchema):
    user: DepositOwnerSchema


class DepositDetailSchema(DepositWithUserSchema):
    audit_trail: List[AuditEventSchema] = []


class CreditedUserSchema(DepositOwnerSchema):
    new_balance: Decimal


class ManualDepositResultSchema(CamelSchema):
    deposit: DepositSchema
    user: CreditedUserSchema


class CancelDepositResultSchema(DepositSchema):
    refund_amount: Decimal = Decimal("0")
    new_balance: Optional[Decimal] = None


class StatsTotalSchema(CamelSchema):
    amount: Decimal = Decimal("0")
    count: int = 0


class CurrencyStatSchema(StatsTotalSchema):
    currency: str


class NetworkStatSchema(StatsTotalSchema):
    network: str


class StatusStatSchema(StatsTotalSchema):
    status: str


class ManualDepositStatsSchema(CamelSchema):
    total: StatsTotalSchema
    by_currency: List[CurrencyStatSchema] = []
    by_network: List[NetworkStatSchema] = []
    by_status: List[StatusStatSchema] = []
