# -*- coding:utf-8 -*-
"""
Trinity 枚举定义
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
✅ 用户角色
✅ 币种 / 网络
✅ 充值类型 / 状态
✅ 账本操作类型 / 审计事件类型
"""

from enum import Enum


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class Currency(str, Enum):
    USDT = "USDT"
    USDC = "USDC"
    BUSD = "BUSD"
    BNB = "BNB"
    ETH = "ETH"
    MATIC = "MATIC"


class Network(str, Enum):
    BEP20 = "BEP20"
    TRC20 = "TRC20"
    ERC20 = "ERC20"
    POLYGON = "POLYGON"


class DepositType(str, Enum):
    """AUTOMATED 为链上回调入账，MANUAL_ADMIN 为后台手工入账"""
    AUTOMATED = "AUTOMATED"
    MANUAL_ADMIN = "MANUAL_ADMIN"


class DepositStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class LedgerKind(str, Enum):
    """
    账本操作类型
      - DEPOSIT：入账，增加余额与累计充值
      - WITHDRAWAL：出账，减少余额并累计提现
      - REFUND：撤销已入账的充值，减少余额，不改变累计值
    """

    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    REFUND = "REFUND"

    @property
    def direction(self) -> int:
        return 1 if self is LedgerKind.DEPOSIT else -1


class AuditEventType(str, Enum):
    DEPOSIT_CREATED = "DEPOSIT_CREATED"
    DEPOSIT_CANCELLED = "DEPOSIT_CANCELLED"
