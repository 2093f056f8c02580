# trinity/api/cms/model/balance_log.py
from sqlalchemy import Column, DECIMAL, ForeignKey, Integer, String, Text

from trinity.core.interface import InfoCrud


class BalanceLog(InfoCrud):
    """账本流水：每次钱包变动一条，写入后不再修改"""
    __tablename__ = "balance_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("user.id"), index=True, nullable=False)

    kind = Column(String(20), nullable=False)  # DEPOSIT / WITHDRAWAL / REFUND
    amount = Column(DECIMAL(38, 8), nullable=False)
    delta = Column(DECIMAL(38, 8), nullable=False)
    balance_after = Column(DECIMAL(38, 8), nullable=False)

    reference_id = Column(String(64), nullable=True, index=True)  # deposit.id
    memo = Column(Text)
