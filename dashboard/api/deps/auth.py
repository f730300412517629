# dashboard/api/deps/auth.py
"""
会话解析与权限闸门（FastAPI 依赖）：
- get_session_store: 注入会话存储（默认 DatabaseSessionStore，可在测试/部署时 override）
- get_session_user_id: cookie → token → user_id；无 cookie / 过期 / 无效 → None（匿名）
- require_auth: 没有有效会话 → 401（/me 使用）
- require_admin: 没有有效会话 → 401；用户已不存在或非 admin → 403
"""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from dashboard.core.errors import AuthorizationError, ForbiddenError
from dashboard.core.models_user import User
from dashboard.core.security import get_cookie_name
from dashboard.infra.db import get_db
from dashboard.infra.logger import emit
from dashboard.services import users as user_svc
from dashboard.services.sessions import DatabaseSessionStore, SessionStore


def get_session_store(db: Session = Depends(get_db)) -> SessionStore:
    return DatabaseSessionStore(db)


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(get_cookie_name()) or None


def get_session_user_id(
    token: Optional[str] = Depends(get_session_token),
    store: SessionStore = Depends(get_session_store),
) -> Optional[str]:
    if not token:
        return None
    return store.get(token)


def require_auth(user_id: Optional[str] = Depends(get_session_user_id)) -> str:
    if not user_id:
        emit("auth_required_denied")
        raise AuthorizationError("Unauthorized - Please login")
    return user_id


def require_admin(
    user_id: Optional[str] = Depends(get_session_user_id),
    db: Session = Depends(get_db),
) -> User:
    if not user_id:
        emit("admin_required_denied", reason="no_session")
        raise AuthorizationError("Unauthorized")
    user = user_svc.get_user(db, user_id)
    if user is None or not user.is_admin:
        emit("admin_required_denied", reason="not_admin" if user else "user_gone", user_id=user_id)
        raise ForbiddenError("Forbidden")
    return user
