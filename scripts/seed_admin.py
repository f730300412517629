""""根据 .env 或默认值创建/重置一名管理员（口令以 bcrypt 哈希存储）。

可作为脚本执行，也可被测试直接导入调用（提供 run() 函数）"""
# scripts/seed_admin.py
import os
import sys

# 确保脚本在控制台有输出；不影响主服务的日志设置
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("PYTHONUNBUFFERED", "1")

from sqlalchemy.orm import Session  # noqa: E402
from dashboard.infra.db import SessionLocal, init_db  # noqa: E402
from dashboard.infra.logger import emit  # noqa: E402
from dashboard.core.models_user import User, UserRole  # noqa: E402
from dashboard.core.security import hash_password  # noqa: E402


def _get_env(k: str, default: str) -> str:
    v = os.getenv(k)
    return v if v is not None and v != "" else default


def upsert_admin(db: Session, username: str, password: str) -> str:
    u = db.query(User).filter(User.username == username).first()
    if u:
        action = "updated"
        u.role = UserRole.admin
        u.password_hash = hash_password(password)
    else:
        action = "created"
        db.add(User(username=username, password_hash=hash_password(password), role=UserRole.admin))
    db.commit()

    emit("seed_admin_upsert", username=username, action=action)
    print(f"[seed_admin] {action} admin: {username}", flush=True)
    return action


def run() -> str:
    emit("seed_begin", database_url=os.getenv("DATABASE_URL"))
    init_db()
    with SessionLocal() as db:
        action = upsert_admin(
            db,
            _get_env("ADMIN_USERNAME", "admin"),
            _get_env("ADMIN_PASSWORD", "admin123"),
        )
    emit("seed_done", status="ok")
    return action


if __name__ == "__main__":
    try:
        run()
        sys.exit(0)
    except Exception as e:
        emit("seed_error", error=str(e))
        print(f"[seed_admin] ERROR: {e}", file=sys.stderr, flush=True)
        sys.exit(1)
