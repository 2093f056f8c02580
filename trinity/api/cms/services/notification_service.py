"""
通知分发：事务提交后以后台任务执行，任何失败只记录日志
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from fastapi import Request
from loguru import logger


class Notifier(Protocol):
    async def send(self, to: str, subject: str, template: str, data: Dict[str, Any]) -> bool:
        ...


@dataclass
class Notification:
    to: str
    subject: str
    template: str
    data: Dict[str, Any] = field(default_factory=dict)


async def dispatch_notification(notifier: Optional[Notifier], notification: Notification) -> bool:
    if notifier is None:
        logger.warning(f"📭 No notifier configured, dropped '{notification.template}' to {notification.to}")
        return False
    try:
        return bool(await notifier.send(
            to=notification.to,
            subject=notification.subject,
            template=notification.template,
            data=notification.data,
        ))
    except Exception:
        logger.exception(f"Failed to send '{notification.template}' notification to {notification.to}")
        return False


def get_notifier(request: Request) -> Optional[Notifier]:
    """FastAPI 依赖：lifespan 中挂到 app.state.notifier 的通知器"""
    return getattr(request.app.state, "notifier", None)
