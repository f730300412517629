"""
模块职能：
- 会话数据的应用层加解密：sessions.data_encrypted 存密文，明文只在内存中使用。
- 密钥由 SESSION_SECRET 派生（sha256 → urlsafe base64 → Fernet key）。
"""
import base64, json, os, hashlib
from cryptography.fernet import Fernet, InvalidToken

from dashboard.infra.logger import emit

DEFAULT_SECRET = "dev-session-secret"
_warned = False

def _session_secret() -> str:
    global _warned
    secret = os.getenv("SESSION_SECRET")
    if not secret:
        if not _warned:
            emit("session_secret_default", level="WARNING")
            _warned = True
        return DEFAULT_SECRET
    return secret

def _derive_fernet_key(raw: str) -> bytes:
    h = hashlib.sha256(raw.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(h)

def _fernet() -> Fernet:
    return Fernet(_derive_fernet_key(_session_secret()))

def encrypt_dict(d: dict) -> str:
    return _fernet().encrypt(json.dumps(d).encode()).decode()

def decrypt_str(s: str) -> dict:
    """解密失败（换过 SESSION_SECRET / 数据损坏）抛 ValueError。"""
    try:
        return json.loads(_fernet().decrypt(s.encode()).decode())
    except InvalidToken as e:
        raise ValueError("session_data_undecryptable") from e
