# dashboard/api/auth.py
"""
认证接口（挂载在 /api/auth）：
- POST /register         注册（口令 bcrypt 哈希），不自动登录
- POST /login            校验口令，建立服务端会话并下发 HttpOnly cookie
- POST /logout           销毁服务端会话并清 cookie
- GET  /me               当前会话用户（不含口令）
- POST /change-password  仅 admin；先校验旧口令再写入新口令

日志事件（通过 dashboard.infra.logger.emit 发出，不记录明文口令与 token）：
- auth_register_success / auth_register_failed
- auth_login_attempt / auth_login_failed / auth_login_success
- auth_logout / auth_me
- auth_password_changed / auth_password_change_failed
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError as DBIntegrityError
from sqlalchemy.orm import Session

from dashboard.api.deps.auth import (
    get_session_store, get_session_token, require_admin, require_auth,
)
from dashboard.core.errors import (
    AuthenticationError, NotFoundError, ValidationError,
)
from dashboard.core.models_user import User
from dashboard.core.schemas import (
    ChangePasswordIn, InsertUser, LoginIn, MessageOut, RegisterOut, UserOut,
)
from dashboard.core.security import (
    cookie_secure, get_cookie_name, get_session_max_age, hash_password, pwd_context,
    verify_password,
)
from dashboard.infra.db import get_db
from dashboard.infra.logger import emit
from dashboard.services import users as user_svc
from dashboard.services.sessions import SessionStore, new_token

router = APIRouter()


@router.post("/register", response_model=RegisterOut)
def register(body: InsertUser, db: Session = Depends(get_db)):
    try:
        user = user_svc.create_user(db, body.username, hash_password(body.password))
    except DBIntegrityError:
        emit("auth_register_failed", username=body.username, reason="username_taken")
        raise ValidationError("Registration failed")
    emit("auth_register_success", user_id=user.id, username=user.username)
    return {"id": user.id, "username": user.username}


@router.post("/login", response_model=UserOut)
def login(
    body: LoginIn,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    old_token: Optional[str] = Depends(get_session_token),
):
    emit(
        "auth_login_attempt",
        username=body.username,
        ip=str(request.client.host) if request.client else None,
    )

    user = user_svc.get_user_by_username(db, body.username)
    if user is None:
        # 用户不存在也走一次哈希，避免响应时间泄露用户名是否存在
        pwd_context.dummy_verify()
        emit("auth_login_failed", username=body.username, reason="not_found_or_bad_password")
        raise AuthenticationError("Invalid credentials")
    if not verify_password(body.password, user.password_hash):
        emit("auth_login_failed", username=body.username, reason="not_found_or_bad_password")
        raise AuthenticationError("Invalid credentials")

    out = UserOut.model_validate(user)

    # 已有会话则轮换 token
    if old_token:
        store.destroy(old_token)

    token = new_token()
    max_age = get_session_max_age()
    store.set(token, out.id, max_age)
    response.set_cookie(
        key=get_cookie_name(),
        value=token,
        max_age=int(max_age.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=cookie_secure(),
        path="/",
    )

    emit("auth_login_success", user_id=out.id, username=out.username, role=out.role.value)
    return out


@router.post("/logout", response_model=MessageOut)
def logout(
    response: Response,
    store: SessionStore = Depends(get_session_store),
    token: Optional[str] = Depends(get_session_token),
):
    if token:
        store.destroy(token)
    response.delete_cookie(
        key=get_cookie_name(), path="/", httponly=True, samesite="lax", secure=cookie_secure(),
    )
    emit("auth_logout", had_session=bool(token))
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserOut)
def me(user_id: str = Depends(require_auth), db: Session = Depends(get_db)):
    user = user_svc.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    emit("auth_me", user_id=user.id, role=user.role.value)
    return user


@router.post("/change-password", response_model=MessageOut)
def change_password(
    body: ChangePasswordIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    if not verify_password(body.current_password, user.password_hash):
        emit("auth_password_change_failed", user_id=user.id, reason="bad_current_password")
        raise ValidationError("Invalid current password",
                              errors=[{"field": "currentPassword", "message": "Invalid current password"}])

    user_svc.update_user_password(db, user.id, hash_password(body.new_password))
    emit("auth_password_changed", user_id=user.id)
    return {"message": "Password updated"}
