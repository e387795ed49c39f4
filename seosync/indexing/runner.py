"""
同步入口：仅刷新 token、全量检查、提交指定 URL、发布时自动提交、提交站点地图，以及定时任务。

各入口独立可调用，共用 token 管理与状态落库。配置/认证错误直接抛出，
单个 URL 的错误汇总在 RunResult 中。
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..constants import SITEMAP_PATH
from ..errors import IndexingError, InvalidRequestError
from ..models import GoogleCredential
from ..utils.time_utils import now
from .enumerator import classify_url, enumerate_urls
from .inspector import Pacer, inspect_batch, submit_batch, submit_sitemap_feed
from .tokens import force_refresh, get_active_credential, obtain_valid_token
from .types import RunResult, SitemapSubmission, UrlTarget

logger = logging.getLogger(__name__)


def run_token_refresh(db: Session, *, http: Any = None) -> GoogleCredential:
    return force_refresh(db, http=http)


def run_full_inspection(db: Session, *, http: Any = None, pacer: Optional[Pacer] = None) -> RunResult:
    """枚举全部 URL 并逐个检查索引状态"""
    credential = get_active_credential(db)
    site_url = credential.property_url
    token = obtain_valid_token(db, http=http)
    targets = enumerate_urls(db)
    logger.info("开始索引检查：%s 个 URL（资源 %s）", len(targets), site_url)
    return inspect_batch(db, targets, token, site_url, http=http, pacer=pacer)


def _normalize_urls(urls: Iterable[str]) -> List[str]:
    cleaned = [str(url).strip() for url in (urls or []) if str(url or "").strip()]
    if not cleaned:
        raise InvalidRequestError("URL 列表不能为空")
    return cleaned


def run_submission(db: Session, urls: Iterable[str], *, http: Any = None, pacer: Optional[Pacer] = None) -> RunResult:
    """请求 Google 收录调用方给出的 URL 列表"""
    cleaned = _normalize_urls(urls)
    token = obtain_valid_token(db, http=http)
    targets = [UrlTarget(url=url, page_type=classify_url(url)) for url in cleaned]
    logger.info("开始提交收录：%s 个 URL", len(targets))
    return submit_batch(db, targets, token, http=http, pacer=pacer)


def run_auto_submit(
    db: Session,
    url: str,
    page_type: Optional[str] = None,
    reference_id: Optional[str] = None,
    *,
    http: Any = None,
    pacer: Optional[Pacer] = None,
) -> Optional[RunResult]:
    """内容发布后自动提交；凭据关闭了自动提交时返回 None"""
    (url,) = _normalize_urls([url])
    credential = get_active_credential(db)
    if not credential.auto_submit_on_publish:
        logger.info("自动提交已关闭，跳过 %s", url)
        return None
    token = obtain_valid_token(db, http=http)
    target = UrlTarget(url=url, page_type=page_type or classify_url(url), reference_id=reference_id)
    return submit_batch(db, [target], token, http=http, pacer=pacer)


def submit_sitemap(
    db: Session,
    *,
    http: Any = None,
    clock: Callable[[], datetime] = now,
) -> Optional[SitemapSubmission]:
    """向 Search Console 提交站点地图；凭据关闭了站点地图提交时返回 None。

    成功后记录 last_sitemap_submit，接口错误以 ProviderError 抛出且不修改记录。
    """
    credential = get_active_credential(db)
    if not credential.auto_submit_sitemap:
        logger.info("站点地图自动提交已关闭，跳过")
        return None
    token = obtain_valid_token(db, http=http, clock=clock)
    sitemap_url = f"{settings.SITE_BASE_URL}{SITEMAP_PATH}"
    submit_sitemap_feed(credential.property_url, sitemap_url, token, http=http)

    submitted_at = clock()
    try:
        credential.last_sitemap_submit = submitted_at
        db.add(credential)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("站点地图已提交：%s（资源 %s）", sitemap_url, credential.property_url)
    return SitemapSubmission(sitemap_url=sitemap_url, submitted_at=submitted_at)


class IndexingScheduler:
    """后台线程：按固定间隔执行全量检查。

    与手动触发的运行之间不做互斥，两者重叠时按 URL upsert，后写入者生效。
    """

    def __init__(self, session_factory: Callable[[], Session], interval_minutes: float):
        self.session_factory = session_factory
        self.interval_seconds = max(0.0, float(interval_minutes) * 60.0)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.interval_seconds <= 0 or self.running:
            return
        self._stop.clear()
        t = threading.Thread(target=self._worker, name="indexing-scheduler", daemon=True)
        t.start()
        self._thread = t
        logger.info("定时索引检查已启动，间隔 %.0f 秒", self.interval_seconds)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def run_once(self) -> Optional[RunResult]:
        with self.session_factory() as db:
            try:
                return run_full_inspection(db)
            except IndexingError as exc:
                logger.error("定时索引检查失败：%s", exc.message)
            except Exception:
                logger.exception("定时索引检查异常")
        return None

    def _worker(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.run_once()


__all__ = [
    "run_token_refresh",
    "run_full_inspection",
    "run_submission",
    "run_auto_submit",
    "submit_sitemap",
    "IndexingScheduler",
]
