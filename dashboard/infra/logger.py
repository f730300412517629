"""
模块职责：统一日志配置与结构化输出（JSON 一行）。
- configure_logging(): 控制台 + 可选的按天轮转文件，uvicorn 日志合流到同一套 handler。
- emit(event, **kwargs) / emit_error(event, **kwargs): 结构化事件日志。
- 敏感字段（password / token / sid 等）在落日志前统一打码。
"""
import logging, json, os, pathlib
from logging.handlers import TimedRotatingFileHandler
from datetime import datetime


LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() == "true"
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_FILE = os.getenv("LOG_FILE", "dashboard.log")
LOG_ROTATE_WHEN = os.getenv("LOG_ROTATE_WHEN", "midnight")
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "7"))

# 这些键无论出现在哪个事件里都不落明文
SENSITIVE_KEYS = {"password", "current_password", "new_password", "password_hash", "token", "sid"}

_configured = False

def configure_logging():
    global _configured
    if _configured:
        return

    level = getattr(logging, LEVEL, logging.INFO)
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    ))
    root.addHandler(console)

    if LOG_TO_FILE:
        pathlib.Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
        fileh = TimedRotatingFileHandler(
            os.path.join(LOG_DIR, LOG_FILE),
            when=LOG_ROTATE_WHEN, backupCount=LOG_BACKUP_COUNT, encoding="utf-8",
        )
        fileh.setLevel(level)
        # 文件里只写 message（纯 JSON），便于 grep / jq
        fileh.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(fileh)

    root.setLevel(level)

    for ln in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(ln)
        lg.handlers = []
        lg.propagate = True

    _configured = True

_app_logger = logging.getLogger("dashboard")

def _now_iso():
    return datetime.now().astimezone().isoformat(timespec="milliseconds")

def _scrub(fields: dict) -> dict:
    return {k: ("***" if k in SENSITIVE_KEYS else v) for k, v in fields.items()}

def _record(event: str, level: str, fields: dict) -> str:
    rec = {"ts": _now_iso(), "level": level, "event": event, **_scrub(fields)}
    try:
        return json.dumps(rec, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(rec)

def emit(event: str, level: str = "INFO", **kwargs):
    """
    结构化日志：默认 INFO；每条都带本地时区时间戳 ts。
    用法：emit("series_created", series_id=..., actor=...)
    """
    lvl = getattr(logging, level.upper(), logging.INFO)
    _app_logger.log(lvl, _record(event, level.upper(), kwargs))


def emit_error(event: str, **kwargs):
    """
    错误日志（level=ERROR）。
    用法：emit_error("series_delete_failed", series_id=..., error=str(e))
    """
    _app_logger.error(_record(event, "ERROR", kwargs))
