from trinity.api.cms.model.user import User
from trinity.api.cms.model.wallet import Wallet
from trinity.api.cms.model.deposit import Deposit
from trinity.api.cms.model.balance_log import BalanceLog
from trinity.api.cms.model.audit_event import AuditEvent

__all__ = ["User", "Wallet", "Deposit", "BalanceLog", "AuditEvent"]
