"""
# @Time    : 2025/12/03 20:25
# @Author  : Pedro
# @File    : wallet.py
# @Software: PyCharm
"""
from decimal import Decimal

from sqlalchemy import Column, DECIMAL, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from trinity.core.interface import InfoCrud


class Wallet(InfoCrud):
    __tablename__ = "wallet"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("user.id", ondelete="CASCADE"), unique=True, nullable=False)

    # 余额只能通过 LedgerService 修改
    balance = Column(DECIMAL(38, 8), nullable=False, default=Decimal("0"))
    total_deposits = Column(DECIMAL(38, 8), nullable=False, default=Decimal("0"))
    total_withdrawals = Column(DECIMAL(38, 8), nullable=False, default=Decimal("0"))

    user = relationship("User", back_populates="wallet")
