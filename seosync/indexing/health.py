"""连接诊断：不写状态表，只回答“集成当前是否可用”"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List

from sqlalchemy.orm import Session

from ..constants import ERROR_DESCRIPTIONS, REQUIRED_SCOPES
from ..errors import NotConfiguredError, ProviderError, TokenRefreshError
from ..utils.time_utils import now
from .inspector import inspect_url
from .tokens import fetch_token_scopes, get_active_credential, obtain_valid_token

logger = logging.getLogger(__name__)


@dataclass
class HealthReport:
    credentials_present: bool = False
    token_refreshable: bool = False
    api_reachable: bool = False
    scopes_present: bool = False
    problems: List[str] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return all((self.credentials_present, self.token_refreshable, self.api_reachable, self.scopes_present))


def check_connection(db: Session, *, http: Any = None, clock: Callable[[], datetime] = now) -> HealthReport:
    """诊断集成是否可用。token 仅在临近过期时刷新，其余情况不修改任何记录。"""
    report = HealthReport()

    try:
        credential = get_active_credential(db)
    except NotConfiguredError as exc:
        report.problems.append(exc.message)
        return report
    report.credentials_present = True
    probe_url = credential.property_url

    try:
        token = obtain_valid_token(db, http=http, clock=clock)
        report.token_refreshable = True
    except (NotConfiguredError, TokenRefreshError) as exc:
        report.problems.append(f"无法刷新 token：{exc.message}")
        return report

    try:
        inspect_url(probe_url, token, credential.property_url, http=http)
        report.api_reachable = True
    except ProviderError as exc:
        report.problems.append(f"{ERROR_DESCRIPTIONS.get(exc.classification, exc.classification)}（{probe_url}）：{exc.detail}")

    try:
        granted = fetch_token_scopes(token, http=http)
    except TokenRefreshError as exc:
        report.problems.append(f"无法读取授权范围：{exc.message}")
    else:
        missing = [scope for scope in REQUIRED_SCOPES if scope not in granted]
        report.scopes_present = not missing
        if missing:
            report.problems.append("缺少授权范围：" + ", ".join(missing))

    if report.problems:
        logger.warning("Google 连接诊断发现问题：%s", "；".join(report.problems))
    return report


__all__ = ["HealthReport", "check_connection"]
