from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import ExpiredSignatureError, InvalidTokenError
from sqlalchemy.ext.asyncio import AsyncSession

from trinity.core.config import Settings
from trinity.core.db import get_session
from trinity.core.exception import Forbidden, UnAuthentication


# ======================================================
# 🔐 Trinity-Core JWT 服务（管理端访问令牌）
# ======================================================
class JWTService:
    def __init__(self, settings: Settings):
        self.secret = settings.auth.secret
        self.algorithm = settings.auth.algorithm
        self.access_exp = settings.auth.access_timedelta

    def create_access_token(self, user) -> str:
        now = datetime.now(timezone.utc)
        scopes = ["admin"] if user.is_admin else ["user"]
        payload = {
            "uid": user.id,
            "scope": scopes,
            "iat": now,
            "exp": now + self.access_exp,
            "type": "access",
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str, required_scopes: Optional[List[str]] = None) -> Dict[str, Any]:
        """校验签名 / 过期 / 类型 / 作用域，返回 payload"""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise UnAuthentication("Token expired")
        except InvalidTokenError:
            raise UnAuthentication("Invalid token")

        if payload.get("type") != "access" or not payload.get("uid"):
            raise UnAuthentication("Invalid token")

        if required_scopes:
            token_scopes = set(payload.get("scope", []))
            if not any(s in token_scopes for s in required_scopes):
                raise Forbidden(f"Insufficient scope, required: {required_scopes}")
        return payload


# ======================================================
# ⚙️ FastAPI 依赖封装
# ======================================================
security_scheme = HTTPBearer(auto_error=False)


def get_jwt_service(request: Request) -> JWTService:
    return request.app.state.jwt


async def get_current_user(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
        jwt_service: JWTService = Depends(get_jwt_service),
        session: AsyncSession = Depends(get_session),
):
    if not credentials:
        raise UnAuthentication("Missing authentication credentials")

    payload = jwt_service.verify(credentials.credentials)
    request.state.token_scopes = list(payload.get("scope", []))

    from trinity.api.cms.model import User

    user = await User.get(session, payload["uid"])
    if not user or not user.is_active:
        raise UnAuthentication("User does not exist or has been deactivated")
    return user


async def admin_required(request: Request, user=Depends(get_current_user)):
    scopes = getattr(request.state, "token_scopes", [])
    if not user.is_admin or "admin" not in scopes:
        raise Forbidden("Admin privileges required")
    return user
