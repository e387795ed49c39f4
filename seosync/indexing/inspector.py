"""
限速批量检查 / 提交

- 严格顺序：一次调用只处理一个 URL，按输入顺序
- 单个 URL 失败只记录在该 URL 上，批处理继续
- 每个 URL 处理完（无论成败）都经 Pacer 等待固定间隔
- 全部 URL 处理完才返回 RunResult，不做自动重试
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, Optional
from urllib.parse import quote

import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..constants import (
    ERROR_FORBIDDEN,
    ERROR_NOT_FOUND,
    ERROR_PERSISTENCE,
    ERROR_PROVIDER,
    ERROR_UNAUTHORIZED,
    INDEXING_PUBLISH_ENDPOINT,
    REQUEST_PACING_SECONDS,
    SITEMAP_SUBMIT_ENDPOINT,
    URL_INSPECTION_ENDPOINT,
    VERDICT_ERROR_PREFIX,
    VERDICT_SUBMITTED,
    VERDICT_UNKNOWN,
)
from ..errors import ProviderError
from ..utils.time_utils import now, parse_provider_time
from .reconciler import reconcile
from .types import RunResult, UrlOutcome, UrlTarget

logger = logging.getLogger(__name__)


class Pacer:
    """固定间隔节流器：每次 wait() 休眠 delay 秒。

    sleep 可替换（测试中注入假时钟）。
    """

    def __init__(self, delay: float = REQUEST_PACING_SECONDS, sleep: Callable[[float], None] = time.sleep):
        self.delay = delay
        self._sleep = sleep

    def wait(self) -> None:
        if self.delay > 0:
            self._sleep(self.delay)


_STATUS_CLASSIFICATION = {
    401: ERROR_UNAUTHORIZED,
    403: ERROR_FORBIDDEN,
    404: ERROR_NOT_FOUND,
}


def classify_http_error(status_code: Optional[int]) -> str:
    if status_code is None:
        return ERROR_PROVIDER
    return _STATUS_CLASSIFICATION.get(status_code, ERROR_PROVIDER)


def _send(http: Any, method: str, endpoint: str, token: str, body: Optional[dict] = None):
    """发出一次带 Bearer token 的请求；网络错误与非 2xx 都转为 ProviderError"""
    kwargs = {
        "headers": {"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
        "timeout": settings.GOOGLE_HTTP_TIMEOUT,
    }
    if body is not None:
        kwargs["json"] = body
    try:
        response = getattr(http, method)(endpoint, **kwargs)
    except requests.RequestException as exc:
        # 超时与网络错误同样视为接口错误
        raise ProviderError(ERROR_PROVIDER, str(exc)) from exc

    if not 200 <= response.status_code < 300:
        raise ProviderError(classify_http_error(response.status_code), response.text, response.status_code)
    return response


def _post_json(http: Any, endpoint: str, token: str, body: dict) -> dict:
    response = _send(http, "post", endpoint, token, body)
    try:
        data = response.json()
    except ValueError as exc:
        raise ProviderError(ERROR_PROVIDER, f"响应不是 JSON: {response.text[:200]}", response.status_code) from exc
    return data if isinstance(data, dict) else {}


def inspect_url(url: str, token: str, site_url: str, *, http: Any = None) -> dict:
    """调用 URL Inspection 接口，返回 indexStatusResult（可能为空字典）"""
    data = _post_json(http or requests, URL_INSPECTION_ENDPOINT, token, {"inspectionUrl": url, "siteUrl": site_url})
    inspection = data.get("inspectionResult") or {}
    if not isinstance(inspection, dict):
        raise ProviderError(ERROR_PROVIDER, f"inspectionResult 格式错误: {inspection!r:.200}")
    result = inspection.get("indexStatusResult") or {}
    if not isinstance(result, dict):
        raise ProviderError(ERROR_PROVIDER, f"indexStatusResult 格式错误: {result!r:.200}")
    for key in ("verdict", "coverageState", "lastCrawlTime"):
        if result.get(key) is not None and not isinstance(result[key], str):
            raise ProviderError(ERROR_PROVIDER, f"{key} 格式错误: {result[key]!r:.200}")
    for key in ("errors", "warnings"):
        if result.get(key) is not None and not isinstance(result[key], list):
            raise ProviderError(ERROR_PROVIDER, f"{key} 格式错误: {result[key]!r:.200}")
    return result


def submit_url(url: str, token: str, *, http: Any = None) -> dict:
    """调用 Indexing API 通知 URL 已更新"""
    return _post_json(http or requests, INDEXING_PUBLISH_ENDPOINT, token, {"url": url, "type": "URL_UPDATED"})


def submit_sitemap_feed(property_url: str, sitemap_url: str, token: str, *, http: Any = None) -> None:
    """向 Search Console 提交（或重新提交）站点地图；成功时 Google 返回空响应体"""
    endpoint = SITEMAP_SUBMIT_ENDPOINT.format(site=quote(property_url, safe=""), feed=quote(sitemap_url, safe=""))
    _send(http or requests, "put", endpoint, token)


def _failure_outcome(target: UrlTarget, exc: ProviderError) -> UrlOutcome:
    return UrlOutcome(
        url=target.url,
        page_type=target.page_type,
        reference_id=target.reference_id,
        success=False,
        verdict=f"{VERDICT_ERROR_PREFIX}{exc.classification.upper()}",
        errors=[{
            "classification": exc.classification,
            "status_code": exc.http_status,
            "message": exc.message,
            "detail": exc.detail,
        }],
        checked_at=now(),
        classification=exc.classification,
        error=exc.message,
    )


def _inspection_outcome(target: UrlTarget, result: dict) -> UrlOutcome:
    return UrlOutcome(
        url=target.url,
        page_type=target.page_type,
        reference_id=target.reference_id,
        success=True,
        verdict=result.get("verdict") or VERDICT_UNKNOWN,
        coverage_state=result.get("coverageState"),
        last_crawled=parse_provider_time(result.get("lastCrawlTime")),
        errors=result.get("errors") or None,
        warnings=result.get("warnings") or None,
        checked_at=now(),
        payload=result,
    )


def _submission_outcome(target: UrlTarget, result: dict) -> UrlOutcome:
    return UrlOutcome(
        url=target.url,
        page_type=target.page_type,
        reference_id=target.reference_id,
        success=True,
        verdict=VERDICT_SUBMITTED,
        checked_at=now(),
        payload=result,
    )


def _record(db: Session, run: RunResult, outcome: UrlOutcome) -> None:
    """写库并计入结果；写库失败时该 URL 记为失败，批处理继续"""
    try:
        reconcile(db, outcome)
    except SQLAlchemyError as exc:
        logger.exception("索引状态写入失败：%s", outcome.url)
        outcome.success = False
        outcome.classification = ERROR_PERSISTENCE
        outcome.error = str(exc)
    run.add(outcome)


def _run_batch(
    db: Session,
    targets: Iterable[UrlTarget],
    call: Callable[[UrlTarget], dict],
    on_success: Callable[[UrlTarget, dict], UrlOutcome],
    pacer: Optional[Pacer],
    label: str,
) -> RunResult:
    pacer = pacer or Pacer()
    run = RunResult()
    for target in targets:
        try:
            outcome = on_success(target, call(target))
        except ProviderError as exc:
            logger.warning("%s失败 %s [%s]: %s", label, target.url, exc.classification, exc.detail)
            outcome = _failure_outcome(target, exc)
        _record(db, run, outcome)
        pacer.wait()
    logger.info("%s完成：共 %s 个 URL，成功 %s，失败 %s", label, run.total, run.success_count, run.error_count)
    return run


def inspect_batch(
    db: Session,
    targets: Iterable[UrlTarget],
    token: str,
    site_url: str,
    *,
    http: Any = None,
    pacer: Optional[Pacer] = None,
) -> RunResult:
    """逐个检查 URL 的索引状态并写入状态表"""
    return _run_batch(
        db,
        targets,
        lambda target: inspect_url(target.url, token, site_url, http=http),
        _inspection_outcome,
        pacer,
        "索引检查",
    )


def submit_batch(
    db: Session,
    targets: Iterable[UrlTarget],
    token: str,
    *,
    http: Any = None,
    pacer: Optional[Pacer] = None,
) -> RunResult:
    """逐个请求 Google 收录 URL，成功的记为 SUBMITTED"""
    return _run_batch(
        db,
        targets,
        lambda target: submit_url(target.url, token, http=http),
        _submission_outcome,
        pacer,
        "提交收录",
    )


__all__ = [
    "Pacer",
    "classify_http_error",
    "inspect_url",
    "submit_url",
    "submit_sitemap_feed",
    "inspect_batch",
    "submit_batch",
]
