"""
应用入口：
- 加载 .env（先 .env.example 作默认，再用 .env 覆盖）
- lifespan 启动阶段：配置日志 → 打印 logger_config → 初始化数据库 → 清理过期会话
- 装载请求日志中间件、CORS（带 cookie）、路由
- 统一错误体：所有 HTTPException / 校验错误 / 未处理异常都整形成 {"message": ...}
- 提供 /health
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# 1) 先加载 .env，务必在导入 logger / db 之前
ROOT = Path(__file__).resolve().parents[1]
ENV = ROOT / ".env"
ENV_EXAMPLE = ROOT / ".env.example"
if ENV_EXAMPLE.exists():
    load_dotenv(ENV_EXAMPLE, override=False)
if ENV.exists():
    load_dotenv(ENV, override=True)

# 2) 正常导入
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dashboard.middleware.logging import RequestLoggingMiddleware
from dashboard.infra.logger import (
    configure_logging, emit, emit_error,
    LOG_TO_FILE, LOG_DIR, LOG_FILE, LOG_ROTATE_WHEN, LOG_BACKUP_COUNT,
)
from dashboard.infra.db import SessionLocal, init_db
from dashboard.api import auth as auth_api
from dashboard.api import series as series_api
from dashboard.api import measurements as measurements_api
from dashboard.core.errors import ValidationError
from dashboard.core.schemas import field_errors
from dashboard.services.sessions import DatabaseSessionStore

# 3) lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    emit(
        "logger_config",
        to_file=LOG_TO_FILE, dir=LOG_DIR, file=LOG_FILE,
        when=LOG_ROTATE_WHEN, backup=LOG_BACKUP_COUNT,
    )
    init_db()
    emit("db_init_done")
    with SessionLocal() as db:
        DatabaseSessionStore(db).purge_expired()
    yield
    emit("app_shutdown")

# 4) 创建应用并装配
app = FastAPI(title="Series Dashboard API", version="0.1.0", lifespan=lifespan)
app.add_middleware(RequestLoggingMiddleware)

# 逗号分隔的白名单；为空则不开 CORS（同源部署）
cors_env = os.getenv("CORS_ORIGINS", "").strip()
if cors_env:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in cors_env.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Content-Type"],
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    body = {"message": str(exc.detail)}
    if isinstance(exc, ValidationError) and exc.errors:
        body["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = field_errors(exc)
    emit("request_invalid", path=request.url.path, fields=[e["field"] for e in errors])
    return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    emit_error("unhandled_error", path=request.url.path, error=repr(exc))
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


@app.get("/health")
def health():
    return {"ok": True}

# 路由
app.include_router(auth_api.router,         prefix="/api/auth", tags=["auth"])
app.include_router(series_api.router,       prefix="/api",      tags=["series"])
app.include_router(measurements_api.router, prefix="/api",      tags=["measurements"])
