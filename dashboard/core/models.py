# dashboard/core/models.py
"""
模块职能：

定义仪表盘的三张业务表 + 一张会话表（users 表见 models_user.py）：

series：管理员定义的数值通道（名称、取值范围、颜色、图标）

measurements：挂在某个 series 下的带时间戳读数

sessions：服务端会话（opaque token → 加密的 {user_id}，绝对过期时间）

级联删除全部交给数据库外键（ON DELETE CASCADE），应用层不做预检查：
删 series → 其 measurements 随之删除；删 user → 其 series / measurements 随之删除。
sessions 不挂外键，用户被删后残留会话解析出的 user 为空（/me 返回 404，admin 闸门返回 403）。

时间字段统一存“naive UTC”，序列化时再补 UTC 时区（见 core/schemas.py）。"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint, Column, DateTime, Float, ForeignKey, Index, String, Text,
)
from sqlalchemy.orm import declarative_base, relationship


def _uuid() -> str: return str(uuid.uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

Base = declarative_base()


class Series(Base):
    __tablename__ = "series"
    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    min_value = Column(Float, nullable=False)
    max_value = Column(Float, nullable=False)
    color = Column(Text, nullable=False)                           # 例如 "#3b82f6"
    icon = Column(Text, nullable=False)                            # 例如 "Thermometer"
    created_by_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"),
                           index=True, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    __table_args__ = (
        CheckConstraint("max_value > min_value", name="ck_series_range"),
    )

    measurements = relationship("Measurement", back_populates="series", passive_deletes=True)


class Measurement(Base):
    __tablename__ = "measurements"
    id = Column(String(36), primary_key=True, default=_uuid)
    value = Column(Float, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=utcnow)   # 语义时间，可单独修改
    series_id = Column(String(36), ForeignKey("series.id", ondelete="CASCADE"), nullable=False)
    created_by_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"),
                           index=True, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)  # 入库时间
    __table_args__ = (
        Index("ix_measurements_series_ts", "series_id", "timestamp"),
        Index("ix_measurements_ts", "timestamp"),
    )

    series = relationship("Series", back_populates="measurements")


class Session(Base):
    __tablename__ = "sessions"
    sid = Column(String(64), primary_key=True)                     # cookie 里的 opaque token
    user_id = Column(String(36), index=True, nullable=False)      # 不挂外键：会话是独立的 KV 空间
    data_encrypted = Column(Text, nullable=False)                  # Fernet 加密的 {"user_id": ...}
    expires_at = Column(DateTime, nullable=False, index=True)      # 绝对过期，不随访问续期
    created_at = Column(DateTime, nullable=False, default=utcnow)
