"""
# @Time    : 2025/12/04 11:02
# @Author  : Pedro
# @File    : audit_event.py
# @Software: PyCharm
"""
from sqlalchemy import JSON, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from trinity.core.interface import InfoCrud


class AuditEvent(InfoCrud):
    """充值审计事件（追加写入），payload 结构见 schema/audit.py"""
    __tablename__ = "audit_event"

    id = Column(Integer, primary_key=True, autoincrement=True)
    deposit_id = Column(String(36), ForeignKey("deposit.id"), index=True, nullable=False)
    event_type = Column(String(32), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    actor_id = Column(String(36), nullable=True)
    actor_email = Column(String(255), nullable=True)
    payload = Column(JSON, nullable=False)

    deposit = relationship("Deposit", back_populates="audit_events")
