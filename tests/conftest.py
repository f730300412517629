# tests/conftest.py
# 测试环境变量要在导入 dashboard 之前设置（engine / logger 在导入时读取）
import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="dashboard_pytest_")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/test.db"
os.environ["LOG_TO_FILE"] = "false"   # 测试别落盘，减少噪音
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["REGISTRATION_ROLE"] = "admin"
os.environ["ENFORCE_SERIES_RANGE"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from dashboard.main import app  # noqa: E402
from dashboard.core.models import Base  # noqa: E402
from dashboard.infra.db import SessionLocal, engine, init_db  # noqa: E402


@pytest.fixture(autouse=True)
def _clean_tables():
    init_db()
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def register(client: TestClient, username: str = "alice", password: str = "password123") -> dict:
    r = client.post("/api/auth/register", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


def login(client: TestClient, username: str = "alice", password: str = "password123") -> dict:
    r = client.post("/api/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture
def admin_client(client: TestClient) -> TestClient:
    register(client)
    login(client)
    return client


SERIES_BODY = {"name": "Temp", "minValue": 0, "maxValue": 100, "color": "#3b82f6", "icon": "Thermometer"}


def create_series(client: TestClient, **overrides) -> dict:
    r = client.post("/api/series", json={**SERIES_BODY, **overrides})
    assert r.status_code == 201, r.text
    return r.json()
