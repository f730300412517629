# dashboard/core/models_user.py
""""定义 UserRole（admin|viewer）与 User ORM 实体：
id/username/password_hash/role/created_at。

password_hash 只在服务层与 security 之间流转，任何响应模型都不含该字段。"""
from enum import Enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, String
from sqlalchemy.orm import relationship

from dashboard.core.models import Base, _uuid, utcnow


class UserRole(str, Enum):
    admin = "admin"
    viewer = "viewer"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    username = Column(String(64), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.admin)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    series = relationship("Series", passive_deletes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin
