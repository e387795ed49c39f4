"""
应用配置加载模块
- 所有配置从 .env 加载（UTF-8）
- 通过 pydantic-settings 提供类型安全的设置对象
"""
from __future__ import annotations

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """全局配置（.env）"""

    SITE_NAME: str = "SEO Sync"
    TIMEZONE: str | None = "America/Sao_Paulo"

    DATABASE_URL: str = "sqlite:///./data/app.db"

    HOST: str = "0.0.0.0"
    PORT: int = 9093

    LOG_DIR: str = "logs"
    # 是否启用应用层访问日志兜底（当 Uvicorn 未开启 --access-log 时仍记录访问日志）
    APP_ACCESS_LOG: bool = True

    FRONTEND_ORIGINS: list[str] = ["http://localhost:3000"]

    # 站点根地址：枚举 URL 的前缀，也是默认的 Search Console 资源
    SITE_BASE_URL: str = "https://technedigital.com.br"

    # Google OAuth 客户端（仅连接流程使用；刷新时以凭据记录中保存的为准）
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_REDIRECT_URI: str | None = None
    # 所有对 Google 的出站请求超时（秒）
    GOOGLE_HTTP_TIMEOUT: float = 15.0

    # 定时全量检查的间隔（分钟）；<=0 表示关闭
    INDEXING_SCHEDULE_MINUTES: int = 0

    @field_validator("FRONTEND_ORIGINS", mode="before")
    @classmethod
    def _normalize_frontend_origins(cls, value):
        """支持逗号分隔或 JSON 数组形式的域名配置"""
        if value in (None, "", []):
            return ["http://localhost:3000"]
        if isinstance(value, str):
            items = [item.strip() for item in value.split(',') if item.strip()]
            return items or ["http://localhost:3000"]
        if isinstance(value, (tuple, set)):
            return [str(item).strip() for item in value if str(item).strip()]
        return list(value)

    @field_validator("SITE_BASE_URL", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value):
        if value is None:
            return "https://technedigital.com.br"
        return str(value).strip().rstrip("/")

    @model_validator(mode="after")
    def _default_redirect_uri(self) -> "Settings":
        if not self.GOOGLE_REDIRECT_URI:
            self.GOOGLE_REDIRECT_URI = f"{self.SITE_BASE_URL}/admin/google-callback"
        return self

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
