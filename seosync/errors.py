"""
索引同步的错误分类
- 配置/认证错误：整次操作失败，直接返回给调用方
- ProviderError：单个 URL 的接口错误，只记录在该 URL 上，批处理继续
"""
from __future__ import annotations

from typing import Optional

from .constants import ERROR_DESCRIPTIONS, ERROR_PROVIDER


class IndexingError(Exception):
    """同步子系统的基础异常，携带对外的 HTTP 状态码"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotConfiguredError(IndexingError):
    """不存在激活的 Google 凭据（或缺少 refresh token）"""

    status_code = 400


class InvalidRequestError(IndexingError):
    """调用参数不合法（如空的 URL 列表）"""

    status_code = 400


class TokenRefreshError(IndexingError):
    """refresh token 换取 access token 失败"""

    status_code = 502


class ProviderError(IndexingError):
    """调用 Google 接口失败（已分类）：批处理中只记录在该 URL 上，站点地图提交时直接抛给调用方"""

    status_code = 502

    def __init__(self, classification: str, detail: str, http_status: Optional[int] = None):
        label = ERROR_DESCRIPTIONS.get(classification, ERROR_DESCRIPTIONS[ERROR_PROVIDER])
        super().__init__(f"{label}: {detail}" if detail else label)
        self.classification = classification
        self.detail = detail
        self.http_status = http_status


__all__ = ["IndexingError", "InvalidRequestError", "NotConfiguredError", "TokenRefreshError", "ProviderError"]
