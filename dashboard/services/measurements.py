"""
模块职能：
- Measurement CRUD；列表按语义时间 timestamp 排序（默认最新在前），而不是 created_at。
- 读侧可选过滤：series_ids（多选）、[start, end] 闭区间；不分页，一次返回全量。
- create_measurement：未给 timestamp 时取服务器当前 UTC 时间；seriesId 不存在时由外键报 IntegrityError。
- 值域检查：默认不校验 value 是否落在 series 的 [min, max]（与前端展示层一致）；
  ENFORCE_SERIES_RANGE=true 时在写入前校验。

日志：
- measurement_created / measurement_updated / measurement_deleted / measurement_out_of_range
"""
import os
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError as DBIntegrityError
from sqlalchemy.orm import Session

from dashboard.core.errors import ValidationError
from dashboard.core.models import Measurement, Series, utcnow
from dashboard.core.schemas import InsertMeasurement, UpdateMeasurement
from dashboard.infra.logger import emit


def enforce_series_range() -> bool:
    return os.getenv("ENFORCE_SERIES_RANGE", "false").lower() == "true"


def _ordered(q, order: str = "desc"):
    if order == "asc":
        return q.order_by(Measurement.timestamp.asc(), Measurement.created_at.asc(), Measurement.id.asc())
    return q.order_by(Measurement.timestamp.desc(), Measurement.created_at.desc(), Measurement.id.desc())


def get_all_measurements(
    db: Session,
    series_ids: Optional[Iterable[str]] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    order: str = "desc",
) -> List[Measurement]:
    q = db.query(Measurement)
    if series_ids:
        q = q.filter(Measurement.series_id.in_(list(series_ids)))
    if start is not None:
        q = q.filter(Measurement.timestamp >= start)
    if end is not None:
        q = q.filter(Measurement.timestamp <= end)
    return _ordered(q, order).all()


def get_measurement_by_id(db: Session, measurement_id: str) -> Optional[Measurement]:
    return db.get(Measurement, measurement_id)


def get_measurements_by_series(db: Session, series_id: str) -> List[Measurement]:
    return _ordered(db.query(Measurement).filter(Measurement.series_id == series_id)).all()


def _check_range(db: Session, series_id: str, value: float):
    s = db.get(Series, series_id)
    # series 不存在交给外键处理
    if s is not None and not (s.min_value <= value <= s.max_value):
        emit("measurement_out_of_range", series_id=series_id, value=value,
             min_value=s.min_value, max_value=s.max_value)
        raise ValidationError(
            "Value outside of valid range",
            errors=[{"field": "value",
                     "message": f"Value outside of valid range ({s.min_value} - {s.max_value})"}],
        )


def create_measurement(db: Session, data: InsertMeasurement, owner_id: str) -> Measurement:
    if enforce_series_range():
        _check_range(db, data.series_id, data.value)

    m = Measurement(
        value=data.value,
        series_id=data.series_id,
        timestamp=data.timestamp or utcnow(),
        created_by_id=owner_id,
    )
    try:
        db.add(m); db.commit(); db.refresh(m)
    except DBIntegrityError:
        db.rollback()
        raise
    emit("measurement_created", measurement_id=m.id, series_id=m.series_id, owner_id=owner_id)
    return m


def update_measurement(db: Session, measurement_id: str, patch: UpdateMeasurement) -> Optional[Measurement]:
    m = db.get(Measurement, measurement_id)
    if m is None:
        return None

    changes = patch.model_dump(exclude_unset=True)
    if "value" in changes and enforce_series_range():
        _check_range(db, m.series_id, changes["value"])

    for k, v in changes.items():
        setattr(m, k, v)
    db.commit(); db.refresh(m)
    emit("measurement_updated", measurement_id=measurement_id, fields=sorted(changes))
    return m


def delete_measurement(db: Session, measurement_id: str) -> int:
    n = (db.query(Measurement)
           .filter(Measurement.id == measurement_id)
           .delete(synchronize_session=False))
    db.commit()
    emit("measurement_deleted", measurement_id=measurement_id, count=n)
    return n
