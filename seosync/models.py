"""
ORM 模型定义
- Google Search Console 凭据（单条激活记录）
- URL 索引状态快照（按 URL 唯一）
- 内容表：博客文章、作品集项目（仅同步所需字段）
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base
from .utils.time_utils import now


class GoogleCredential(Base):
    __tablename__ = "google_search_console_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[str] = mapped_column(String(255))
    client_secret: Mapped[str] = mapped_column(String(255))
    access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    token_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    # 授权时 Google 返回的 scope（空格分隔）
    scope: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    property_url: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    auto_submit_on_publish: Mapped[bool] = mapped_column(Boolean, default=True)
    auto_submit_sitemap: Mapped[bool] = mapped_column(Boolean, default=False)
    last_sitemap_submit: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now, onupdate=now)


class IndexingStatus(Base):
    __tablename__ = "seo_indexing_status"
    __table_args__ = (UniqueConstraint("url", name="uq_seo_indexing_status_url"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    url: Mapped[str] = mapped_column(String(512))
    page_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    reference_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    # PASS/NEUTRAL/FAIL/...（Google verdict）或 SUBMITTED/PENDING/UNKNOWN/ERROR_*
    indexing_status: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    coverage_state: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_crawled: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    errors: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    warnings: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    last_checked: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now)


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(255), default="")
    status: Mapped[str] = mapped_column(String(32), default="draft", index=True)  # draft/scheduled/published
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now, onupdate=now)


class PortfolioProject(Base):
    __tablename__ = "portfolio_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(255), default="")
    status: Mapped[str] = mapped_column(String(32), default="active", index=True)  # active/inactive
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now, onupdate=now)
