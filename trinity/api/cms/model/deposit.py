# trinity/api/cms/model/deposit.py

from sqlalchemy import Column, DECIMAL, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from trinity.core.db import generate_uuid
from trinity.core.enums import DepositStatus, DepositType
from trinity.core.interface import InfoCrud


class Deposit(InfoCrud):
    __tablename__ = "deposit"
    __table_args__ = (
        Index("ix_deposit_type_create_time", "deposit_type", "create_time"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("user.id"), nullable=False, index=True)
    amount = Column(DECIMAL(38, 8), nullable=False)
    currency = Column(String(16), nullable=False)
    network = Column(String(16), nullable=False)
    deposit_type = Column(String(20), nullable=False, default=DepositType.AUTOMATED.value)
    # PENDING -> CONFIRMED / CANCELLED，CANCELLED 为终态
    status = Column(String(20), nullable=False, default=DepositStatus.PENDING.value)
    tx_hash = Column(String(128), nullable=True, index=True)
    admin_notes = Column(Text, nullable=True)

    user = relationship("User", lazy="selectin")
    audit_events = relationship(
        "AuditEvent",
        back_populates="deposit",
        order_by="AuditEvent.id",
        lazy="noload",
    )

    @property
    def is_manual(self) -> bool:
        return self.deposit_type == DepositType.MANUAL_ADMIN.value

    @property
    def is_cancelled(self) -> bool:
        return self.status == DepositStatus.CANCELLED.value
