"""
依赖项：数据库会话、出站 HTTP 会话、请求节流器
"""
from __future__ import annotations

import requests

from .database import SessionLocal
from .indexing.inspector import Pacer


def get_db():
    """获取 DB 会话，使用后自动关闭"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_http():
    """调用 Google 接口使用的 HTTP 会话（每个请求独立，结束后关闭连接池）"""
    session = requests.Session()
    try:
        yield session
    finally:
        session.close()


def get_pacer() -> Pacer:
    return Pacer()
