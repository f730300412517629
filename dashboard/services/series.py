"""
模块职能：
- Series CRUD；列表按 created_at 倒序（同一时刻再按 id，保证顺序稳定）。
- update_series 是部分更新：只覆盖传入字段；写库前基于“旧记录 + 补丁”复核 maxValue > minValue。
- delete_series 只删 series 本身，其 measurements 由数据库外键 ON DELETE CASCADE 删除，
  即使并发插入也不会留下孤儿读数（插入要么外键失败，要么随后被级联）。

日志：
- series_created / series_updated / series_deleted
"""
from typing import List, Optional

from sqlalchemy.exc import IntegrityError as DBIntegrityError
from sqlalchemy.orm import Session

from dashboard.core.errors import ValidationError
from dashboard.core.models import Series
from dashboard.core.schemas import InsertSeries, UpdateSeries, RANGE_MESSAGE
from dashboard.infra.logger import emit


def get_all_series(db: Session) -> List[Series]:
    return (db.query(Series)
              .order_by(Series.created_at.desc(), Series.id.desc())
              .all())


def get_series_by_id(db: Session, series_id: str) -> Optional[Series]:
    return db.get(Series, series_id)


def create_series(db: Session, data: InsertSeries, owner_id: str) -> Series:
    s = Series(**data.model_dump(), created_by_id=owner_id)
    try:
        db.add(s); db.commit(); db.refresh(s)
    except DBIntegrityError:
        db.rollback()
        raise
    emit("series_created", series_id=s.id, owner_id=owner_id, name=s.name)
    return s


def update_series(db: Session, series_id: str, patch: UpdateSeries) -> Optional[Series]:
    s = db.get(Series, series_id)
    if s is None:
        return None

    changes = patch.model_dump(exclude_unset=True)
    lo = changes.get("min_value", s.min_value)
    hi = changes.get("max_value", s.max_value)
    if hi <= lo:
        emit("series_update_rejected", series_id=series_id, min_value=lo, max_value=hi)
        raise ValidationError("Failed to update series",
                              errors=[{"field": "maxValue", "message": RANGE_MESSAGE}])

    for k, v in changes.items():
        setattr(s, k, v)
    try:
        db.commit(); db.refresh(s)
    except DBIntegrityError:
        db.rollback()
        raise
    emit("series_updated", series_id=series_id, fields=sorted(changes))
    return s


def delete_series(db: Session, series_id: str) -> int:
    n = db.query(Series).filter(Series.id == series_id).delete(synchronize_session=False)
    db.commit()
    emit("series_deleted", series_id=series_id, count=n)
    return n
