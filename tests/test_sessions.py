# tests/test_sessions.py
"""服务端会话存储：绝对过期、销毁、清理、密文损坏。"""
from datetime import timedelta

from dashboard.core.models import Session as SessionModel, utcnow
from dashboard.services.secrets import decrypt_str, encrypt_dict
from dashboard.services.sessions import DatabaseSessionStore, new_token


def test_tokens_are_opaque_and_unique():
    a, b = new_token(), new_token()
    assert a != b and len(a) >= 32


def test_set_get_destroy(db):
    store = DatabaseSessionStore(db)
    sid = new_token()
    expires = store.set(sid, "user-1", timedelta(days=30))

    assert store.get(sid) == "user-1"
    assert timedelta(days=29) < expires - utcnow() <= timedelta(days=30)

    row = db.get(SessionModel, sid)
    assert "user-1" not in row.data_encrypted  # 会话数据落库为密文
    assert decrypt_str(row.data_encrypted) == {"user_id": "user-1"}

    store.destroy(sid)
    assert store.get(sid) is None
    store.destroy(sid)  # 重复销毁无副作用


def test_expired_session_resolves_to_anonymous_and_is_removed(db):
    store = DatabaseSessionStore(db)
    sid = new_token()
    store.set(sid, "user-1", timedelta(seconds=-1))

    assert store.get(sid) is None
    db.expire_all()
    assert db.get(SessionModel, sid) is None


def test_unknown_token(db):
    assert DatabaseSessionStore(db).get("does-not-exist") is None


def test_tampered_session_data_is_rejected(db):
    store = DatabaseSessionStore(db)
    sid = new_token()
    store.set(sid, "user-1", timedelta(days=1))

    row = db.get(SessionModel, sid)
    row.data_encrypted = encrypt_dict({"user_id": "someone-else"})
    db.commit()
    assert store.get(sid) is None

    sid2 = new_token()
    store.set(sid2, "user-2", timedelta(days=1))
    db.get(SessionModel, sid2).data_encrypted = "garbage"
    db.commit()
    assert store.get(sid2) is None


def test_purge_expired_keeps_live_sessions(db):
    store = DatabaseSessionStore(db)
    live, dead1, dead2 = new_token(), new_token(), new_token()
    store.set(live, "u", timedelta(days=1))
    store.set(dead1, "u", timedelta(seconds=-5))
    store.set(dead2, "u", timedelta(seconds=-5))

    assert store.purge_expired() == 2
    assert store.get(live) == "u"
