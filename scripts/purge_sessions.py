""""清理已过期的服务端会话（sessions.expires_at <= now）。

适合挂在 cron 上定期执行；服务启动时也会自动清一次。"""
# scripts/purge_sessions.py
import os
import sys

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("PYTHONUNBUFFERED", "1")

from dashboard.infra.db import SessionLocal  # noqa: E402
from dashboard.infra.logger import emit  # noqa: E402
from dashboard.services.sessions import DatabaseSessionStore  # noqa: E402


def run() -> int:
    with SessionLocal() as db:
        n = DatabaseSessionStore(db).purge_expired()
    print(f"[purge_sessions] removed {n} expired session(s).", flush=True)
    return n


if __name__ == "__main__":
    try:
        run()
        sys.exit(0)
    except Exception as e:
        emit("purge_sessions_error", error=str(e))
        print(f"[purge_sessions] ERROR: {e}", file=sys.stderr, flush=True)
        sys.exit(1)
