# dashboard/infra/db.py
""""模块职能：

读取 DATABASE_URL，创建 SQLAlchemy 引擎（进程内共享连接池）

SQLite 连接上打开 PRAGMA foreign_keys，保证级联删除/外键失败由数据库执行

暴露 SessionLocal、get_db()（FastAPI 依赖）

init_db()：启动时统一建表"""

import os
from typing import Generator
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from dashboard.core.models import Base
from dashboard.core import models_user  # noqa: F401  # 导入以注册 users 表

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dashboard.db")
IS_SQLITE = DATABASE_URL.startswith("sqlite")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if IS_SQLITE else {},
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


if IS_SQLITE:
    @event.listens_for(engine, "connect")
    def _enable_sqlite_fk(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()


def init_db():
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI 依赖函数：每请求一个 Session，用后自动关闭。"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
