"""
模块职能：
- 用户读写：按 id / username 查询、注册建号、改口令、（运维用）删号。
- 注册角色由 REGISTRATION_ROLE 决定，默认 admin（沿用现有行为：所有自助注册账号都是管理员）。
- username 唯一性由数据库唯一索引保证；冲突时回滚并把 IntegrityError 抛给调用方。

日志：
- user_created / user_password_updated / user_deleted
"""
import os
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dashboard.core.models_user import User, UserRole
from dashboard.infra.logger import emit


def registration_role() -> UserRole:
    raw = os.getenv("REGISTRATION_ROLE", UserRole.admin.value).strip().lower()
    try:
        return UserRole(raw)
    except ValueError:
        emit("registration_role_invalid", level="WARNING", value=raw)
        return UserRole.admin


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def create_user(db: Session, username: str, password_hash: str,
                role: Optional[UserRole] = None) -> User:
    user = User(username=username, password_hash=password_hash,
                role=role or registration_role())
    try:
        db.add(user); db.commit(); db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise
    emit("user_created", user_id=user.id, username=user.username, role=user.role.value)
    return user


def update_user_password(db: Session, user_id: str, password_hash: str) -> None:
    (db.query(User)
       .filter(User.id == user_id)
       .update({User.password_hash: password_hash}, synchronize_session=False))
    db.commit()
    emit("user_password_updated", user_id=user_id)


def delete_user(db: Session, user_id: str) -> int:
    """不走 HTTP；名下 series / measurements 由外键级联删除。"""
    n = db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
    db.commit()
    emit("user_deleted", user_id=user_id, count=n)
    return n
