"""
模块职责：请求级日志中间件。
- 每个请求生成（或沿用客户端传入的）request_id，并写回响应头 x-request-id；
- 记录 request_start / request_end（耗时、状态码、是否带会话 cookie）；
- 未处理异常记 request_error 后继续抛出，交给 main.py 的兜底处理器。
"""
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from dashboard.core.security import get_cookie_name
from dashboard.infra.logger import emit, emit_error

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = rid
        base = {
            "request_id": rid,
            "method": request.method,
            "path": request.url.path,
            "has_session": get_cookie_name() in request.cookies,
        }
        start = time.perf_counter()
        emit("request_start", **base)
        try:
            response: Response = await call_next(request)
        except Exception as e:
            emit_error("request_error", error=repr(e),
                       duration_ms=round((time.perf_counter() - start) * 1000, 2), **base)
            raise
        emit("request_end", status_code=response.status_code,
             duration_ms=round((time.perf_counter() - start) * 1000, 2), **base)
        response.headers["x-request-id"] = rid
        return response
