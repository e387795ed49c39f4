"""Google 账号连接与凭据设置

- GET    /api/google/oauth/init      生成授权地址
- POST   /api/google/oauth/callback  用授权码换取 token 并保存凭据
- GET    /api/google/settings        当前激活凭据概览
- PATCH  /api/google/settings        修改资源地址/自动提交开关
- DELETE /api/google/settings        断开连接（删除凭据）
"""
from __future__ import annotations

import secrets

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..dependencies import get_db, get_http
from ..errors import IndexingError
from ..indexing.tokens import (
    build_authorization_url,
    disconnect,
    exchange_authorization_code,
    get_active_credential,
)
from ..models import GoogleCredential
from ..schemas import GoogleSettingsOut, GoogleSettingsUpdate, OAuthCallbackIn, OAuthInitOut


router = APIRouter(prefix="/api/google", tags=["google"])


def _serialize_credential(credential: GoogleCredential) -> GoogleSettingsOut:
    return GoogleSettingsOut(
        id=credential.id,
        client_id=credential.client_id,
        property_url=credential.property_url,
        is_active=bool(credential.is_active),
        auto_submit_on_publish=bool(credential.auto_submit_on_publish),
        auto_submit_sitemap=bool(credential.auto_submit_sitemap),
        last_sitemap_submit=credential.last_sitemap_submit,
        token_expires_at=credential.token_expires_at,
        scope=credential.scope,
        has_refresh_token=bool(credential.refresh_token),
        updated_at=credential.updated_at,
    )


@router.get("/oauth/init", response_model=OAuthInitOut)
def oauth_init():
    try:
        return OAuthInitOut(auth_url=build_authorization_url(state=secrets.token_urlsafe(16)))
    except IndexingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


@router.post("/oauth/callback", response_model=GoogleSettingsOut)
def oauth_callback(payload: OAuthCallbackIn, db: Session = Depends(get_db), http=Depends(get_http)):
    try:
        credential = exchange_authorization_code(db, payload.code, http=http)
    except IndexingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return _serialize_credential(credential)


@router.get("/settings", response_model=GoogleSettingsOut)
def get_settings(db: Session = Depends(get_db)):
    try:
        credential = get_active_credential(db)
    except IndexingError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message) from exc
    return _serialize_credential(credential)


@router.patch("/settings", response_model=GoogleSettingsOut)
def update_settings(payload: GoogleSettingsUpdate, db: Session = Depends(get_db)):
    try:
        credential = get_active_credential(db)
    except IndexingError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message) from exc
    if payload.property_url is not None:
        property_url = payload.property_url.strip()
        if not property_url:
            raise HTTPException(status_code=400, detail="资源地址不能为空")
        credential.property_url = property_url
    if payload.auto_submit_on_publish is not None:
        credential.auto_submit_on_publish = payload.auto_submit_on_publish
    if payload.auto_submit_sitemap is not None:
        credential.auto_submit_sitemap = payload.auto_submit_sitemap
    db.add(credential)
    db.commit()
    db.refresh(credential)
    return _serialize_credential(credential)


@router.delete("/settings", status_code=status.HTTP_204_NO_CONTENT)
def delete_settings(db: Session = Depends(get_db)):
    if not disconnect(db):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="没有已连接的 Google 账号")
