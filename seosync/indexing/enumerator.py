"""
站点 URL 枚举
固定一级路由 + 已发布博客 + 上线中的作品集；不可见内容一律不枚举。
"""
from __future__ import annotations

from datetime import date
from typing import List, NamedTuple, Optional
from urllib.parse import urlparse

from sqlalchemy.orm import Session

from ..config import settings
from ..constants import (
    BLOG_STATUS_PUBLISHED,
    PAGE_TYPE_BLOG_POST,
    PAGE_TYPE_PORTFOLIO,
    PAGE_TYPE_STATIC,
    PORTFOLIO_STATUS_ACTIVE,
    SITEMAP_CONTENT_HINT,
    SITEMAP_STATIC_HINTS,
    STATIC_ROUTES,
)
from ..models import BlogPost, PortfolioProject
from ..utils.time_utils import now
from .types import UrlTarget


def _base(base_url: Optional[str]) -> str:
    return (base_url or settings.SITE_BASE_URL).rstrip("/")


def _published_posts(db: Session) -> List[BlogPost]:
    return (
        db.query(BlogPost)
        .filter(BlogPost.status == BLOG_STATUS_PUBLISHED)
        .order_by(BlogPost.updated_at.desc(), BlogPost.id.desc())
        .all()
    )


def _active_projects(db: Session) -> List[PortfolioProject]:
    return (
        db.query(PortfolioProject)
        .filter(PortfolioProject.status == PORTFOLIO_STATUS_ACTIVE)
        .order_by(PortfolioProject.created_at.desc(), PortfolioProject.id.desc())
        .all()
    )


def enumerate_urls(db: Session, base_url: Optional[str] = None) -> List[UrlTarget]:
    """返回当前应被检查的全部 URL（顺序：固定路由、博客、作品集）"""
    base = _base(base_url)
    targets = [UrlTarget(url=f"{base}{route}", page_type=PAGE_TYPE_STATIC) for route in STATIC_ROUTES]
    targets.extend(
        UrlTarget(url=f"{base}/blog/{post.slug}", page_type=PAGE_TYPE_BLOG_POST, reference_id=str(post.id))
        for post in _published_posts(db)
    )
    targets.extend(
        UrlTarget(url=f"{base}/portfolio/{project.slug}", page_type=PAGE_TYPE_PORTFOLIO, reference_id=str(project.id))
        for project in _active_projects(db)
    )
    return targets


def classify_url(url: str, base_url: Optional[str] = None) -> str:
    """根据路径推断调用方提交的 URL 的页面类型"""
    path = urlparse(url).path.rstrip("/")
    base_path = urlparse(_base(base_url)).path.rstrip("/")
    if base_path and path.startswith(base_path):
        path = path[len(base_path):]
    if path.startswith("/blog/"):
        return PAGE_TYPE_BLOG_POST
    if path.startswith("/portfolio/"):
        return PAGE_TYPE_PORTFOLIO
    return PAGE_TYPE_STATIC


def belongs_to_site(url: str, base_url: Optional[str] = None) -> bool:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return False
    return parsed.netloc.lower() == urlparse(_base(base_url)).netloc.lower()


class SitemapEntry(NamedTuple):
    loc: str
    lastmod: date
    changefreq: str
    priority: str


def build_sitemap_entries(db: Session, base_url: Optional[str] = None) -> List[SitemapEntry]:
    """站点地图条目，与 enumerate_urls 使用同一可见性条件"""
    base = _base(base_url)
    today = now().date()
    entries: List[SitemapEntry] = []
    for route in STATIC_ROUTES:
        changefreq, priority = SITEMAP_STATIC_HINTS.get(route, SITEMAP_CONTENT_HINT)
        entries.append(SitemapEntry(f"{base}{route}", today, changefreq, priority))
    changefreq, priority = SITEMAP_CONTENT_HINT
    for post in _published_posts(db):
        entries.append(SitemapEntry(f"{base}/blog/{post.slug}", (post.updated_at or post.created_at).date(), changefreq, priority))
    for project in _active_projects(db):
        entries.append(SitemapEntry(f"{base}/portfolio/{project.slug}", project.created_at.date(), changefreq, priority))
    return entries


__all__ = ["enumerate_urls", "classify_url", "belongs_to_site", "build_sitemap_entries", "SitemapEntry"]
