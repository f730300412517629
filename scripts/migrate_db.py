""""轻量迁移：按 ORM 定义创建 users / series / measurements / sessions 表（若不存在）。

用 SQLAlchemy 的 Base.metadata.create_all()，
只补缺失的表，不修改既有表结构与数据。"""

# scripts/migrate_db.py
import os
import sys

# 确保脚本在控制台有输出；不影响主服务的日志设置
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("PYTHONUNBUFFERED", "1")

from dashboard.infra.db import init_db  # noqa: E402
from dashboard.infra.logger import emit  # noqa: E402


def run():
    emit("migrate_begin", database_url=os.getenv("DATABASE_URL"))
    print("[migrate_db] creating tables if not exists ...", flush=True)
    init_db()
    emit("migrate_done", status="ok")
    print("[migrate_db] done.", flush=True)


if __name__ == "__main__":
    print(f"[migrate_db] DATABASE_URL={os.getenv('DATABASE_URL')}", flush=True)
    try:
        run()
        sys.exit(0)
    except Exception as e:
        emit("migrate_error", error=str(e))
        print(f"[migrate_db] ERROR: {e}", file=sys.stderr, flush=True)
        sys.exit(1)
