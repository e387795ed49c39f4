"""测试共用的夹具：内存数据库、假 HTTP 会话、固定时钟"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from seosync.constants import GOOGLE_TOKEN_URL, GOOGLE_TOKENINFO_URL, REQUIRED_SCOPES
from seosync.database import Base
from seosync.indexing.inspector import Pacer
from seosync.models import GoogleCredential

NOW = datetime(2026, 3, 1, 12, 0, 0)


def fixed_clock():
    return NOW


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeHttp:
    """按 URL 路由到处理函数的假 requests 会话，记录所有调用"""

    def __init__(self):
        self.calls = []
        self.routes = {}

    def on(self, url, handler):
        self.routes[url] = handler
        return self

    def _dispatch(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        handler = self.routes.get(url)
        if handler is None:
            raise AssertionError(f"unexpected {method} {url}")
        return handler(kwargs)

    def post(self, url, **kwargs):
        return self._dispatch("POST", url, kwargs)

    def get(self, url, **kwargs):
        return self._dispatch("GET", url, kwargs)

    def put(self, url, **kwargs):
        return self._dispatch("PUT", url, kwargs)

    def calls_to(self, url):
        return [call for call in self.calls if call[1] == url]


def token_ok(access_token="new-token", expires_in=3600, scope=None):
    payload = {"access_token": access_token, "expires_in": expires_in, "token_type": "Bearer"}
    if scope:
        payload["scope"] = scope
    return lambda kwargs: FakeResponse(200, payload)


def tokeninfo_ok(scopes=REQUIRED_SCOPES):
    return lambda kwargs: FakeResponse(200, {"scope": " ".join(scopes)})


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(eng)
        eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture()
def session(session_factory):
    """独立的内存数据库会话"""
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture()
def http():
    return FakeHttp()


@pytest.fixture()
def sleeps():
    return []


@pytest.fixture()
def pacer(sleeps):
    """不真正休眠的节流器，记录每次等待时长"""
    return Pacer(sleep=sleeps.append)


@pytest.fixture()
def make_credential(session):
    def _make(expires_in=timedelta(hours=1), **overrides):
        values = dict(
            client_id="client-id",
            client_secret="client-secret",
            access_token="stored-token",
            refresh_token="refresh-token",
            token_expires_at=NOW + expires_in if expires_in is not None else None,
            property_url="https://technedigital.com.br",
            is_active=True,
        )
        values.update(overrides)
        credential = GoogleCredential(**values)
        session.add(credential)
        session.commit()
        return credential

    return _make


__all__ = ["NOW", "fixed_clock", "FakeResponse", "FakeHttp", "token_ok", "tokeninfo_ok", "GOOGLE_TOKEN_URL", "GOOGLE_TOKENINFO_URL"]
