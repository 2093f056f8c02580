# -*- coding: utf-8 -*-
"""
# @Time    : 2025/12/06 20:10
# @Author  : Pedro
# @File    : send_email.py
# @Software: PyCharm
"""
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from trinity.core.service_manager import BaseService
from trinity.util.build_email_html import render_template


class EmailService(BaseService):
    """
    YCloud 邮件发送（best-effort）
    - send() 从不抛异常：失败记录日志并返回 False
    - 未启用时只记录日志
    """
    name = "email"

    def __init__(self, settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(settings)
        self.config = settings.email
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def init(self):
        self.client = httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport)

    async def close(self):
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    async def send(self, to: str, subject: str, template: str, data: Dict[str, Any]) -> bool:
        if not self.config.enabled:
            logger.info(f"📭 Email disabled, skipped '{template}' to {to}")
            return False

        try:
            html_content = render_template(template, self.config.brand, data)
            payload = {
                "contentType": "text/html",
                "from": self.config.sender,
                "to": to,
                "subject": subject,
                "content": html_content,
            }
            headers = {
                "Content-Type": "application/json",
                "X-API-Key": self.config.api_key or "",
            }
            if self.client is None:
                await self.init()
            response = await self.client.post(self.config.endpoint, json=payload, headers=headers)
        except (httpx.HTTPError, KeyError) as e:
            logger.error(f"❌ Email '{template}' to {to} failed: {e}")
            return False

        if response.is_success:
            logger.info(f"✅ Email '{template}' sent to {to}")
            return True
        logger.error(f"❌ Email '{template}' to {to} failed: {response.status_code} {response.text}")
        return False
