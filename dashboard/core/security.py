# dashboard/core/security.py
""""封装口令哈希/校验（passlib[bcrypt]）与会话 cookie 参数。

会话是服务端会话（见 services/sessions.py），cookie 里只放 opaque token：
HttpOnly、SameSite=lax、生产环境 Secure，Max-Age 固定 30 天（绝对过期，不随访问续期）。"""

import os
from datetime import timedelta

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


def get_cookie_name() -> str:
    return os.getenv("SESSION_COOKIE_NAME", "sid")


def get_session_max_age() -> timedelta:
    try:
        days = int(os.getenv("SESSION_MAX_AGE_DAYS", "30"))
    except ValueError:
        days = 30
    return timedelta(days=days)


def cookie_secure() -> bool:
    return os.getenv("APP_ENV", "development").lower() == "production"


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # 库里不是合法的 passlib 哈希：按校验失败处理
        return False
