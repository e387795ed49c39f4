"""
Google OAuth 凭据与 access token 管理

- obtain_valid_token：保证返回的 token 至少还有 TOKEN_REFRESH_MARGIN 的有效期
- refresh_access_token：refresh token 换取新 token；失败时凭据记录保持原样
- 连接/断开流程：生成授权地址、用授权码换取 token 并写入唯一激活记录
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional
from urllib.parse import urlencode

import requests
from sqlalchemy.orm import Session

from ..config import settings
from ..constants import (
    GOOGLE_AUTH_URL,
    GOOGLE_TOKEN_URL,
    GOOGLE_TOKENINFO_URL,
    OAUTH_SCOPES,
    TOKEN_REFRESH_MARGIN,
)
from ..errors import NotConfiguredError, TokenRefreshError
from ..models import GoogleCredential
from ..utils.time_utils import now

logger = logging.getLogger(__name__)


def get_active_credential(db: Session) -> GoogleCredential:
    """读取唯一的激活凭据；不存在时直接失败，不做任何后续工作。"""
    credential = (
        db.query(GoogleCredential)
        .filter(GoogleCredential.is_active.is_(True))
        .order_by(GoogleCredential.updated_at.desc(), GoogleCredential.id.desc())
        .first()
    )
    if credential is None:
        raise NotConfiguredError("Google Search Console 未配置（不存在激活的凭据）")
    return credential


def needs_refresh(credential: GoogleCredential, current: datetime) -> bool:
    if not credential.access_token or credential.token_expires_at is None:
        return True
    return credential.token_expires_at - current < TOKEN_REFRESH_MARGIN


def _request_tokens(http: Any, form: dict[str, str]) -> dict[str, Any]:
    """向 token 端点提交表单，返回校验过的响应体。任何失败都抛 TokenRefreshError。"""
    try:
        response = http.post(GOOGLE_TOKEN_URL, data=form, timeout=settings.GOOGLE_HTTP_TIMEOUT)
    except requests.RequestException as exc:
        raise TokenRefreshError(f"无法连接 Google token 端点: {exc}") from exc

    if not 200 <= response.status_code < 300:
        raise TokenRefreshError(f"刷新 token 失败（HTTP {response.status_code}）: {response.text}")

    try:
        body = response.json()
    except ValueError as exc:
        raise TokenRefreshError(f"token 端点返回的不是 JSON: {response.text[:200]}") from exc

    if not isinstance(body, dict):
        raise TokenRefreshError("token 端点返回格式错误")
    access_token = body.get("access_token")
    expires_in = body.get("expires_in")
    if not isinstance(access_token, str) or not access_token:
        raise TokenRefreshError("token 端点未返回 access_token")
    if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)) or expires_in <= 0:
        raise TokenRefreshError(f"token 端点返回的 expires_in 无效: {expires_in!r}")
    if expires_in < TOKEN_REFRESH_MARGIN.total_seconds():
        # 有效期短于安全余量的 token 拿到即需再刷新，按刷新失败处理
        raise TokenRefreshError(f"token 端点返回的有效期过短: {expires_in} 秒")
    return body


def refresh_access_token(
    db: Session,
    credential: GoogleCredential,
    *,
    http: Any = None,
    clock: Callable[[], datetime] = now,
) -> str:
    """用 refresh token 换取新的 access token，并写回凭据记录。

    响应全部校验通过后才修改 ORM 对象；写库失败会回滚，记录保持刷新前的值。
    """
    if not credential.refresh_token:
        raise NotConfiguredError("凭据缺少 refresh token，请重新连接 Google 账号")

    client = http or requests
    logger.info("正在刷新 Google access token（credential_id=%s）", credential.id)
    body = _request_tokens(
        client,
        {
            "client_id": credential.client_id,
            "client_secret": credential.client_secret,
            "refresh_token": credential.refresh_token,
            "grant_type": "refresh_token",
        },
    )

    issued_at = clock()
    try:
        credential.access_token = body["access_token"]
        credential.token_expires_at = issued_at + timedelta(seconds=int(body["expires_in"]))
        credential.updated_at = issued_at
        if body.get("scope"):
            credential.scope = str(body["scope"])
        db.add(credential)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("access token 已刷新，有效期至 %s", credential.token_expires_at)
    return credential.access_token


def obtain_valid_token(
    db: Session,
    *,
    http: Any = None,
    clock: Callable[[], datetime] = now,
) -> str:
    """返回至少还有安全余量的 access token，必要时同步刷新。"""
    credential = get_active_credential(db)
    if needs_refresh(credential, clock()):
        return refresh_access_token(db, credential, http=http, clock=clock)
    return credential.access_token


def force_refresh(
    db: Session,
    *,
    http: Any = None,
    clock: Callable[[], datetime] = now,
) -> GoogleCredential:
    """无论是否到期都执行一次刷新（“仅刷新 token”入口）。"""
    credential = get_active_credential(db)
    refresh_access_token(db, credential, http=http, clock=clock)
    return credential


def fetch_token_scopes(token: str, *, http: Any = None) -> set[str]:
    """通过 tokeninfo 查询 access token 实际具备的授权范围"""
    client = http or requests
    try:
        response = client.get(
            GOOGLE_TOKENINFO_URL,
            params={"access_token": token},
            timeout=settings.GOOGLE_HTTP_TIMEOUT,
        )
    except requests.RequestException as exc:
        raise TokenRefreshError(f"无法查询 token 信息: {exc}") from exc
    if not 200 <= response.status_code < 300:
        raise TokenRefreshError(f"tokeninfo 返回 HTTP {response.status_code}: {response.text}")
    try:
        body = response.json()
    except ValueError as exc:
        raise TokenRefreshError("tokeninfo 返回的不是 JSON") from exc
    return {item for item in str(body.get("scope") or "").split() if item}


# ---- 连接 / 断开 ----

def build_authorization_url(state: Optional[str] = None) -> str:
    """生成 Google 授权地址（离线访问，强制 consent 以获得 refresh token）"""
    if not settings.GOOGLE_CLIENT_ID:
        raise NotConfiguredError("未配置 GOOGLE_CLIENT_ID")
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": " ".join(OAUTH_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def exchange_authorization_code(
    db: Session,
    code: str,
    *,
    http: Any = None,
    clock: Callable[[], datetime] = now,
) -> GoogleCredential:
    """用授权码换取 token，写入（或复用）凭据记录并设为唯一激活项。"""
    if not settings.GOOGLE_CLIENT_ID or not settings.GOOGLE_CLIENT_SECRET:
        raise NotConfiguredError("未配置 GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET")

    client = http or requests
    body = _request_tokens(
        client,
        {
            "code": code,
            "client_id": settings.GOOGLE_CLIENT_ID,
            "client_secret": settings.GOOGLE_CLIENT_SECRET,
            "redirect_uri": settings.GOOGLE_REDIRECT_URI,
            "grant_type": "authorization_code",
        },
    )
    issued_at = clock()

    credential = db.query(GoogleCredential).order_by(GoogleCredential.id).first()
    if credential is None:
        credential = GoogleCredential(property_url=settings.SITE_BASE_URL)
        db.add(credential)
    credential.client_id = settings.GOOGLE_CLIENT_ID
    credential.client_secret = settings.GOOGLE_CLIENT_SECRET
    credential.access_token = body["access_token"]
    # Google 只在首次 consent 时保证返回 refresh token，缺失时保留旧值
    if body.get("refresh_token"):
        credential.refresh_token = body["refresh_token"]
    credential.token_expires_at = issued_at + timedelta(seconds=int(body["expires_in"]))
    credential.scope = str(body.get("scope") or "") or credential.scope
    credential.is_active = True
    credential.updated_at = issued_at
    db.flush()

    # 其他记录一律停用，保持最多一条激活凭据
    (
        db.query(GoogleCredential)
        .filter(GoogleCredential.id != credential.id, GoogleCredential.is_active.is_(True))
        .update({GoogleCredential.is_active: False}, synchronize_session=False)
    )
    db.commit()
    logger.info("Google 账号已连接（credential_id=%s）", credential.id)
    return credential


def disconnect(db: Session) -> bool:
    """删除全部凭据记录；返回是否有记录被删除"""
    deleted = db.query(GoogleCredential).delete(synchronize_session=False)
    db.commit()
    if deleted:
        logger.info("Google 账号已断开，删除 %s 条凭据", deleted)
    return bool(deleted)


__all__ = [
    "get_active_credential",
    "needs_refresh",
    "refresh_access_token",
    "obtain_valid_token",
    "force_refresh",
    "fetch_token_scopes",
    "build_authorization_url",
    "exchange_authorization_code",
    "disconnect",
]
