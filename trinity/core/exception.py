# -*- coding: utf-8 -*-
"""
Trinity exception system
--------------------------------
✅ APIException 统一异常基类（msg / error_code / http_code）
✅ 参数校验错误带字段级 details
✅ 未处理异常记录 trace_id 并返回 500
"""
import traceback
import uuid
from typing import Any, List, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel


class APIExceptionModel(BaseModel):
    success: bool = False
    error: str = "Internal error"
    message: str = "sorry, we made a mistake (*￣︶￣)!"
    error_code: int = 999
    request: Optional[str] = None
    trace_id: Optional[str] = None
    details: Optional[List[Any]] = None


class APIException(Exception):
    error = "Internal error"

    def __init__(self, msg="sorry, we made a mistake (*￣︶￣)!", error_code=999, http_code=400,
                 details: Optional[List[Any]] = None):
        super().__init__(msg)
        self.msg = msg
        self.error_code = error_code
        self.http_code = http_code
        self.details = details


class NotFound(APIException):
    error = "Not found"

    def __init__(self, msg="The requested resource does not exist", error_code=1001):
        super().__init__(msg, error_code, http_code=404)


class ParameterError(APIException):
    error = "Validation failed"

    def __init__(self, msg="Invalid parameters", error_code=1002, details=None):
        super().__init__(msg, error_code, http_code=400, details=details)


class InvalidState(APIException):
    error = "Invalid state"

    def __init__(self, msg="Operation not allowed in the current state", error_code=1006):
        super().__init__(msg, error_code, http_code=400)


class Forbidden(APIException):
    error = "Forbidden"

    def __init__(self, msg="Admin privileges required", error_code=1004):
        super().__init__(msg, error_code, http_code=403)


class UnAuthentication(APIException):
    error = "Unauthorized"

    def __init__(self, msg="Authentication Failed", error_code=10010):
        super().__init__(msg, error_code, http_code=401)


class InternalServerError(APIException):
    error = "Internal error"

    def __init__(self, msg="Internal server error", error_code=5001):
        super().__init__(msg, error_code, http_code=500)


def build_error_response(request: Request, exc: APIException, trace_id: Optional[str] = None) -> JSONResponse:
    model = APIExceptionModel(
        error=exc.error,
        message=exc.msg,
        error_code=exc.error_code,
        request=f"{request.method} {request.url.path}",
        trace_id=trace_id or uuid.uuid4().hex[:8],
        details=exc.details,
    )
    return JSONResponse(status_code=exc.http_code, content=model.model_dump(exclude_none=True))


def _validation_details(exc: RequestValidationError) -> List[dict]:
    details = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "msg": err.get("msg", "Invalid value")})
    return details


def register_exception_handlers(app):

    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException):
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = _validation_details(exc)
        msg = details[0]["msg"] if details else "Invalid parameters"
        return build_error_response(request, ParameterError(msg, error_code=1005, details=details))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        trace_id = uuid.uuid4().hex[:8]
        tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logger.error(f"[Unhandled] TraceID={trace_id} {request.method} {request.url.path}\n{tb_str}")
        return build_error_response(request, InternalServerError(str(exc) or "Internal server error", 9999), trace_id)
