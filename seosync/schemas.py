"""
Pydantic 模型定义（请求/响应）
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class UrlOutcomeOut(BaseModel):
    url: str
    page_type: str
    success: bool
    verdict: Optional[str] = None
    coverage_state: Optional[str] = None
    classification: Optional[str] = None
    error: Optional[str] = None


class RunResultOut(BaseModel):
    success: bool = True
    total: int
    success_count: int
    error_count: int
    results: List[UrlOutcomeOut]


class SubmitUrlsIn(BaseModel):
    urls: List[str] = Field(..., min_length=1)


class AutoSubmitIn(BaseModel):
    url: str
    type: Optional[str] = Field(default=None, description="页面类型：page/blog_post/portfolio")
    reference_id: Optional[str] = None


class AutoSubmitOut(BaseModel):
    submitted: bool
    message: str
    result: Optional[RunResultOut] = None


class SitemapSubmitOut(BaseModel):
    submitted: bool
    message: str
    sitemap_url: Optional[str] = None
    submitted_at: Optional[datetime] = None


class TokenRefreshOut(BaseModel):
    success: bool = True
    expires_at: Optional[datetime] = None


class HealthCheckOut(BaseModel):
    healthy: bool
    credentials_present: bool
    token_refreshable: bool
    api_reachable: bool
    scopes_present: bool
    problems: List[str] = []


class IndexingStatusOut(BaseModel):
    id: int
    url: str
    page_type: Optional[str] = None
    reference_id: Optional[str] = None
    indexing_status: Optional[str] = None
    coverage_state: Optional[str] = None
    last_crawled: Optional[datetime] = None
    errors: Optional[Any] = None
    warnings: Optional[Any] = None
    last_checked: Optional[datetime] = None

    class Config:
        from_attributes = True


class ManualUrlIn(BaseModel):
    url: str
    page_type: str = "page"


class OAuthInitOut(BaseModel):
    auth_url: str


class OAuthCallbackIn(BaseModel):
    code: str = Field(..., min_length=1)


class GoogleSettingsOut(BaseModel):
    """凭据概览（不返回 client_secret / token 明文）"""

    id: int
    client_id: str
    property_url: str
    is_active: bool
    auto_submit_on_publish: bool
    auto_submit_sitemap: bool
    last_sitemap_submit: Optional[datetime] = None
    token_expires_at: Optional[datetime] = None
    scope: Optional[str] = None
    has_refresh_token: bool = False
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GoogleSettingsUpdate(BaseModel):
    property_url: Optional[str] = None
    auto_submit_on_publish: Optional[bool] = None
    auto_submit_sitemap: Optional[bool] = None
