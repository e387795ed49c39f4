"""批处理过程中使用的内存结构（不落库）"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional


@dataclass(frozen=True)
class UrlTarget:
    url: str
    page_type: str
    reference_id: Optional[str] = None


@dataclass
class UrlOutcome:
    """单个 URL 的处理结果，同时也是写入状态表的数据来源"""

    url: str
    page_type: str
    reference_id: Optional[str] = None
    success: bool = False
    verdict: Optional[str] = None
    coverage_state: Optional[str] = None
    last_crawled: Optional[datetime] = None
    errors: Optional[List[Any]] = None
    warnings: Optional[List[Any]] = None
    checked_at: Optional[datetime] = None
    classification: Optional[str] = None
    error: Optional[str] = None
    payload: Optional[dict] = None


@dataclass
class RunResult:
    results: List[UrlOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for item in self.results if item.success)

    @property
    def error_count(self) -> int:
        return self.total - self.success_count

    def add(self, outcome: UrlOutcome) -> None:
        self.results.append(outcome)



@dataclass(frozen=True)
class SitemapSubmission:
    sitemap_url: str
    submitted_at: datetime


__all__ = ["UrlTarget", "UrlOutcome", "RunResult", "SitemapSubmission"]
