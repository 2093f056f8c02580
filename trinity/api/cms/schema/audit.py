"""
# @Time    : 2025/12/04 11:20
# @Author  : Pedro
# @File    : audit.py
# @Software: PyCharm
审计事件 payload（按 event_type 区分的结构化版本）
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from trinity.core.enums import AuditEventType
from trinity.core.response import CamelSchema

AUDIT_SCHEMA_VERSION = 1


class DepositCreatedEvent(CamelSchema):
    event_type: Literal["DEPOSIT_CREATED"] = "DEPOSIT_CREATED"
    manual_deposit: bool = True
    admin_id: str
    admin_email: str
    processed_at: datetime


class DepositCancelledEvent(CamelSchema):
    event_type: Literal["DEPOSIT_CANCELLED"] = "DEPOSIT_CANCELLED"
    reason: str
    cancelled_by: str
    cancelled_at: datetime
    refund_amount: Decimal = Decimal("0")
    ledger_entry_id: Optional[int] = None


AuditPayload = Annotated[
    Union[DepositCreatedEvent, DepositCancelledEvent],
    Field(discriminator="event_type"),
]

audit_payload_adapter: TypeAdapter[AuditPayload] = TypeAdapter(AuditPayload)


def dump_payload(event: AuditPayload) -> dict:
    return event.model_dump(mode="json", by_alias=True)


def load_payload(raw: dict) -> AuditPayload:
    return audit_payload_adapter.validate_python(raw)


class AuditEventSchema(CamelSchema):
    id: int
    event_type: AuditEventType
    version: int
    actor_id: Optional[str] = None
    actor_email: Optional[str] = None
    payload: AuditPayload
    create_time: datetime
