"""
全局常量定义模块。
- Google 接口地址与授权范围
- 页面类型、索引状态（verdict）取值
- 刷新安全余量与请求节流间隔
"""
from __future__ import annotations

from datetime import timedelta
from typing import Dict, Tuple


# ---- Google 接口 ----
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
URL_INSPECTION_ENDPOINT = "https://searchconsole.googleapis.com/v1/urlInspection/index:inspect"
INDEXING_PUBLISH_ENDPOINT = "https://indexing.googleapis.com/v3/urlNotifications:publish"
# 资源地址与站点地图地址均需整体 URL 编码后填入
SITEMAP_SUBMIT_ENDPOINT = "https://www.googleapis.com/webmasters/v3/sites/{site}/sitemaps/{feed}"

SCOPE_WEBMASTERS = "https://www.googleapis.com/auth/webmasters"
SCOPE_WEBMASTERS_READONLY = "https://www.googleapis.com/auth/webmasters.readonly"
SCOPE_INDEXING = "https://www.googleapis.com/auth/indexing"

OAUTH_SCOPES: Tuple[str, ...] = (SCOPE_WEBMASTERS, SCOPE_WEBMASTERS_READONLY, SCOPE_INDEXING)
# 健康检查要求令牌至少具备的授权范围
REQUIRED_SCOPES: Tuple[str, ...] = (SCOPE_WEBMASTERS, SCOPE_INDEXING)

# ---- 令牌与节流 ----
# 剩余有效期低于该值即主动刷新
TOKEN_REFRESH_MARGIN = timedelta(minutes=5)
# 批处理中每个 URL 之后的固定间隔（秒），避免触发 Google 配额限制
REQUEST_PACING_SECONDS = 0.1

# ---- 页面类型 ----
PAGE_TYPE_STATIC = "page"
PAGE_TYPE_BLOG_POST = "blog_post"
PAGE_TYPE_PORTFOLIO = "portfolio"
PAGE_TYPES = (PAGE_TYPE_STATIC, PAGE_TYPE_BLOG_POST, PAGE_TYPE_PORTFOLIO)

# 站点固定的一级路由（相对 SITE_BASE_URL）
STATIC_ROUTES: Tuple[str, ...] = ("", "/about", "/services", "/portfolio", "/blog", "/contact")

# 内容可见性
BLOG_STATUS_PUBLISHED = "published"
PORTFOLIO_STATUS_ACTIVE = "active"

# ---- 索引状态 ----
VERDICT_SUBMITTED = "SUBMITTED"
VERDICT_PENDING = "PENDING"
VERDICT_UNKNOWN = "UNKNOWN"
VERDICT_ERROR_PREFIX = "ERROR_"

# ---- 错误分类 ----
ERROR_UNAUTHORIZED = "unauthorized"
ERROR_FORBIDDEN = "forbidden"
ERROR_NOT_FOUND = "not_found"
ERROR_PROVIDER = "provider_error"
# 接口调用成功但状态写库失败
ERROR_PERSISTENCE = "persistence_error"

ERROR_DESCRIPTIONS: Dict[str, str] = {
    ERROR_UNAUTHORIZED: "令牌无效或未授权",
    ERROR_FORBIDDEN: "访问被拒绝：资源未在 Google Search Console 验证",
    ERROR_NOT_FOUND: "目标资源不存在",
    ERROR_PROVIDER: "Google 接口错误",
    ERROR_PERSISTENCE: "索引状态写入失败",
}

# 站点地图中的优先级/更新频率
SITEMAP_STATIC_HINTS: Dict[str, Tuple[str, str]] = {
    "": ("daily", "1.0"),
    "/about": ("monthly", "0.8"),
    "/services": ("weekly", "0.9"),
    "/portfolio": ("weekly", "0.9"),
    "/blog": ("daily", "0.9"),
    "/contact": ("monthly", "0.8"),
}
SITEMAP_CONTENT_HINT: Tuple[str, str] = ("monthly", "0.7")
# 站点地图相对 SITE_BASE_URL 的路径
SITEMAP_PATH = "/sitemap.xml"
