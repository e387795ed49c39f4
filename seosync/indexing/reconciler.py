"""
索引状态落库
每个 URL 一行，单条语句 upsert（按 url 唯一键），表内只保留最新快照。
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..constants import VERDICT_PENDING
from ..models import IndexingStatus
from ..utils.time_utils import now
from .types import UrlOutcome


# 每次检查都整体覆盖的字段
_MUTABLE_FIELDS = (
    "indexing_status",
    "coverage_state",
    "last_crawled",
    "errors",
    "warnings",
    "last_checked",
)


def _dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    elif dialect in {"mysql", "mariadb"}:
        from sqlalchemy.dialects.mysql import insert
    else:
        raise NotImplementedError(f"不支持的数据库方言：{dialect}")
    return dialect, insert


def _upsert(db: Session, values: Dict[str, Any], update_fields: List[str]) -> None:
    dialect, insert = _dialect_insert(db)
    stmt = insert(IndexingStatus).values(**values)
    if dialect in {"mysql", "mariadb"}:
        stmt = stmt.on_duplicate_key_update({name: stmt.inserted[name] for name in update_fields})
    else:
        stmt = stmt.on_conflict_do_update(
            index_elements=[IndexingStatus.url],
            set_={name: stmt.excluded[name] for name in update_fields},
        )
    db.execute(stmt)
    db.commit()


def _row_values(outcome: UrlOutcome) -> Dict[str, Any]:
    return {
        "url": outcome.url,
        "page_type": outcome.page_type,
        "reference_id": outcome.reference_id,
        "indexing_status": outcome.verdict,
        "coverage_state": outcome.coverage_state,
        "last_crawled": outcome.last_crawled,
        "errors": outcome.errors,
        "warnings": outcome.warnings,
        "last_checked": outcome.checked_at or now(),
        "created_at": now(),
    }


def reconcile(db: Session, outcome: UrlOutcome) -> None:
    """写入单个 URL 的最新结果。

    首次出现时插入；之后覆盖 verdict/coverage/last_crawled/errors/warnings/last_checked，
    不保留历史也不合并旧值。page_type/reference_id 仅在新结果带有 reference_id 时更新。
    失败时回滚并把异常抛给调用方。
    """
    update_fields = list(_MUTABLE_FIELDS)
    if outcome.reference_id is not None:
        update_fields += ["page_type", "reference_id"]
    try:
        _upsert(db, _row_values(outcome), update_fields)
    except Exception:
        db.rollback()
        raise


def mark_pending(db: Session, url: str, page_type: str) -> IndexingStatus:
    """手动加入一个待检查的 URL（状态 PENDING）"""
    outcome = UrlOutcome(url=url, page_type=page_type, verdict=VERDICT_PENDING, checked_at=now())
    reconcile(db, outcome)
    return get_status(db, url)


def get_status(db: Session, url: str) -> Optional[IndexingStatus]:
    return db.query(IndexingStatus).filter(IndexingStatus.url == url).first()


def list_statuses(db: Session, page_type: Optional[str] = None) -> List[IndexingStatus]:
    qry = db.query(IndexingStatus)
    if page_type:
        qry = qry.filter(IndexingStatus.page_type == page_type)
    return qry.order_by(IndexingStatus.last_checked.desc(), IndexingStatus.id.desc()).all()


__all__ = ["reconcile", "mark_pending", "get_status", "list_statuses"]
