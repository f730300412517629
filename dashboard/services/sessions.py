"""
模块职能：
- 服务端会话存储：opaque token → {user_id, expires_at}，持久化在 sessions 表，进程重启后仍有效。
- SessionStore 是一个最小的 KV 接口；路由层通过依赖注入拿到实现，可替换为任何持久化存储。
- 过期是绝对的（登录时 + 30 天），读取时发现过期即删除该行并视为匿名。

日志：
- sess_created / sess_hit / sess_miss / sess_expired / sess_corrupt / sess_destroyed / sess_purged
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from dashboard.core.models import Session as SessionModel, utcnow
from dashboard.services.secrets import encrypt_dict, decrypt_str
from dashboard.infra.logger import emit


class SessionStore(Protocol):
    def get(self, sid: str) -> Optional[str]: ...
    def set(self, sid: str, user_id: str, ttl: timedelta) -> datetime: ...
    def destroy(self, sid: str) -> None: ...
    def purge_expired(self) -> int: ...


def new_token() -> str:
    return secrets.token_urlsafe(32)


class DatabaseSessionStore:
    """sessions 表实现；每个请求用自己的 db Session 构造一个实例。"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, sid: str) -> Optional[str]:
        """返回会话绑定的 user_id；不存在/过期/无法解密时返回 None。"""
        row = self.db.get(SessionModel, sid)
        if row is None:
            emit("sess_miss")
            return None
        if row.expires_at <= utcnow():
            emit("sess_expired", user_id=row.user_id)
            self._delete(sid)
            return None
        try:
            data = decrypt_str(row.data_encrypted)
        except ValueError:
            emit("sess_corrupt", user_id=row.user_id, level="WARNING")
            self._delete(sid)
            return None
        user_id = data.get("user_id")
        if user_id != row.user_id:
            emit("sess_corrupt", user_id=row.user_id, level="WARNING")
            self._delete(sid)
            return None
        emit("sess_hit", user_id=user_id)
        return user_id

    def set(self, sid: str, user_id: str, ttl: timedelta) -> datetime:
        expires_at = utcnow() + ttl
        row = SessionModel(sid=sid, user_id=user_id,
                           data_encrypted=encrypt_dict({"user_id": user_id}),
                           expires_at=expires_at)
        self.db.add(row)
        self.db.commit()
        emit("sess_created", user_id=user_id, expires_at=expires_at.isoformat())
        return expires_at

    def destroy(self, sid: str) -> None:
        if self._delete(sid):
            emit("sess_destroyed")

    def purge_expired(self) -> int:
        n = (self.db.query(SessionModel)
             .filter(SessionModel.expires_at <= utcnow())
             .delete(synchronize_session=False))
        self.db.commit()
        emit("sess_purged", count=n)
        return n

    def _delete(self, sid: str) -> int:
        n = (self.db.query(SessionModel)
             .filter(SessionModel.sid == sid)
             .delete(synchronize_session=False))
        self.db.commit()
        return n
