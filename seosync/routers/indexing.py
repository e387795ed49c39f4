"""Google 索引同步接口

- POST /api/indexing/refresh-token   仅刷新 access token
- POST /api/indexing/inspect         全量检查站点 URL 的索引状态
- POST /api/indexing/submit          请求收录指定 URL 列表
- POST /api/indexing/auto-submit     内容发布后自动提交（受开关控制）
- POST /api/indexing/sitemap         向 Search Console 提交站点地图（受开关控制）
- GET  /api/indexing/health          连接诊断（不写状态表）
- GET  /api/indexing/status          索引状态列表
- POST /api/indexing/status          手动加入待检查 URL
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..config import settings
from ..constants import PAGE_TYPES
from ..dependencies import get_db, get_http, get_pacer
from ..errors import IndexingError
from ..indexing.enumerator import belongs_to_site
from ..indexing.health import check_connection
from ..indexing.inspector import Pacer
from ..indexing.reconciler import list_statuses, mark_pending
from ..indexing.runner import (
    run_auto_submit,
    run_full_inspection,
    run_submission,
    run_token_refresh,
    submit_sitemap,
)
from ..indexing.types import RunResult
from ..schemas import (
    AutoSubmitIn,
    AutoSubmitOut,
    HealthCheckOut,
    IndexingStatusOut,
    ManualUrlIn,
    RunResultOut,
    SitemapSubmitOut,
    SubmitUrlsIn,
    TokenRefreshOut,
    UrlOutcomeOut,
)


router = APIRouter(prefix="/api/indexing", tags=["indexing"])


def _raise_http(exc: IndexingError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


def _serialize_run(run: RunResult) -> RunResultOut:
    return RunResultOut(
        total=run.total,
        success_count=run.success_count,
        error_count=run.error_count,
        results=[
            UrlOutcomeOut(
                url=item.url,
                page_type=item.page_type,
                success=item.success,
                verdict=item.verdict,
                coverage_state=item.coverage_state,
                classification=item.classification,
                error=item.error,
            )
            for item in run.results
        ],
    )


@router.post("/refresh-token", response_model=TokenRefreshOut)
def refresh_token(db: Session = Depends(get_db), http=Depends(get_http)):
    try:
        credential = run_token_refresh(db, http=http)
    except IndexingError as exc:
        _raise_http(exc)
    return TokenRefreshOut(expires_at=credential.token_expires_at)


@router.post("/inspect", response_model=RunResultOut)
def inspect_all(db: Session = Depends(get_db), http=Depends(get_http), pacer: Pacer = Depends(get_pacer)):
    try:
        run = run_full_inspection(db, http=http, pacer=pacer)
    except IndexingError as exc:
        _raise_http(exc)
    return _serialize_run(run)


@router.post("/submit", response_model=RunResultOut)
def submit_urls(
    payload: SubmitUrlsIn,
    db: Session = Depends(get_db),
    http=Depends(get_http),
    pacer: Pacer = Depends(get_pacer),
):
    try:
        run = run_submission(db, payload.urls, http=http, pacer=pacer)
    except IndexingError as exc:
        _raise_http(exc)
    return _serialize_run(run)


@router.post("/auto-submit", response_model=AutoSubmitOut)
def auto_submit(
    payload: AutoSubmitIn,
    db: Session = Depends(get_db),
    http=Depends(get_http),
    pacer: Pacer = Depends(get_pacer),
):
    try:
        run = run_auto_submit(db, payload.url, payload.type, payload.reference_id, http=http, pacer=pacer)
    except IndexingError as exc:
        _raise_http(exc)
    if run is None:
        return AutoSubmitOut(submitted=False, message="自动提交已关闭")
    result = _serialize_run(run)
    message = "URL 已提交收录" if run.error_count == 0 else (run.results[0].error or "提交失败")
    return AutoSubmitOut(submitted=run.error_count == 0, message=message, result=result)


@router.post("/sitemap", response_model=SitemapSubmitOut)
def submit_sitemap_to_google(db: Session = Depends(get_db), http=Depends(get_http)):
    try:
        submission = submit_sitemap(db, http=http)
    except IndexingError as exc:
        _raise_http(exc)
    if submission is None:
        return SitemapSubmitOut(submitted=False, message="站点地图自动提交已关闭")
    return SitemapSubmitOut(
        submitted=True,
        message="站点地图已提交",
        sitemap_url=submission.sitemap_url,
        submitted_at=submission.submitted_at,
    )


@router.get("/health", response_model=HealthCheckOut)
def connection_health(db: Session = Depends(get_db), http=Depends(get_http)):
    report = check_connection(db, http=http)
    return HealthCheckOut(
        healthy=report.healthy,
        credentials_present=report.credentials_present,
        token_refreshable=report.token_refreshable,
        api_reachable=report.api_reachable,
        scopes_present=report.scopes_present,
        problems=report.problems,
    )


@router.get("/status", response_model=list[IndexingStatusOut])
def indexing_status(
    page_type: Optional[str] = Query(None, description="按页面类型过滤"),
    db: Session = Depends(get_db),
):
    return list_statuses(db, page_type=page_type)


@router.post("/status", response_model=IndexingStatusOut, status_code=status.HTTP_201_CREATED)
def add_manual_url(payload: ManualUrlIn, db: Session = Depends(get_db)):
    url = payload.url.strip()
    if not belongs_to_site(url):
        raise HTTPException(status_code=400, detail=f"URL 必须属于站点 {settings.SITE_BASE_URL}")
    if payload.page_type not in PAGE_TYPES:
        raise HTTPException(status_code=400, detail="页面类型非法")
    return mark_pending(db, url, payload.page_type)
