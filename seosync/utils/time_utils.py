"""时间与时区工具
- 支持通过 .env 配置自定义时区
- 默认回退到系统本地时间
"""
from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_app_timezone() -> ZoneInfo | None:
    """加载应用配置的时区"""
    tz_name = settings.TIMEZONE
    if not tz_name:
        return None
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        logger.warning("无法加载时区 %s，已回退到系统时区", tz_name)
        return None


def aware_now() -> datetime:
    """返回带时区信息的当前时间"""
    tz = get_app_timezone()
    if tz is not None:
        return datetime.now(tz)
    return datetime.now().astimezone()


def now() -> datetime:
    """返回适合现有数据库的本地时间（去除 tzinfo）"""
    current = aware_now()
    if current.tzinfo is not None:
        return current.replace(tzinfo=None)
    return current


def parse_provider_time(value: str | None) -> datetime | None:
    """解析 Google 返回的 RFC3339 时间（如 2024-05-01T10:00:00Z），转换为本地无时区时间。"""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning("无法解析时间：%s", value)
        return None
    if parsed.tzinfo is None:
        return parsed
    tz = get_app_timezone()
    local = parsed.astimezone(tz) if tz is not None else parsed.astimezone()
    return local.replace(tzinfo=None)


__all__ = ["aware_now", "now", "get_app_timezone", "parse_provider_time"]
