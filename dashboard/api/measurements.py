# dashboard/api/measurements.py
"""
Measurement API（读公开，写仅 admin）
------------------------------------
- GET    /measurements        全量列表，按 timestamp 倒序；可选 seriesId（可重复）/ start / end / order
- POST   /measurements        新建（201）；未给 timestamp 取服务器当前时间；未知 seriesId → 400
- PUT    /measurements/{id}   部分更新 value / timestamp
- DELETE /measurements/{id}   删除

服务端默认不校验 value 是否落在 series 的取值范围内（见 services/measurements.py）。
"""
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dashboard.api.deps.auth import require_admin
from dashboard.core.errors import IntegrityError, NotFoundError, ValidationError
from dashboard.core.models_user import User
from dashboard.core.schemas import (
    InsertMeasurement, MeasurementOut, MessageOut, UpdateMeasurement, to_naive_utc,
)
from dashboard.infra.db import get_db
from dashboard.infra.logger import emit, emit_error
from dashboard.services import measurements as meas_svc

router = APIRouter()


@router.get("/measurements", response_model=List[MeasurementOut])
def list_measurements(
    series_id: Optional[List[str]] = Query(default=None, alias="seriesId"),
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    order: Literal["asc", "desc"] = Query(default="desc"),
    db: Session = Depends(get_db),
):
    if start is not None:
        start = to_naive_utc(start)
    if end is not None:
        end = to_naive_utc(end)
    if start is not None and end is not None and start > end:
        raise ValidationError("Invalid date range",
                              errors=[{"field": "end", "message": "end must not be before start"}])

    rows = meas_svc.get_all_measurements(db, series_ids=series_id, start=start, end=end, order=order)
    emit("api_measurements_list", count=len(rows), series=len(series_id or []), order=order)
    return rows


@router.post("/measurements", response_model=MeasurementOut, status_code=status.HTTP_201_CREATED)
def create_measurement(body: InsertMeasurement, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    try:
        return meas_svc.create_measurement(db, body, user.id)
    except SQLAlchemyError as e:
        # 典型情况：seriesId 不存在（外键失败）
        emit_error("api_measurement_create_failed", actor=user.id, series_id=body.series_id, error=repr(e))
        raise ValidationError("Failed to create measurement")


@router.put("/measurements/{measurement_id}", response_model=MeasurementOut)
def update_measurement(
    measurement_id: str,
    body: UpdateMeasurement,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    try:
        m = meas_svc.update_measurement(db, measurement_id, body)
    except SQLAlchemyError as e:
        db.rollback()
        emit_error("api_measurement_update_failed", actor=user.id, measurement_id=measurement_id, error=repr(e))
        raise ValidationError("Failed to update measurement")
    if m is None:
        raise NotFoundError("Measurement not found")
    return m


@router.delete("/measurements/{measurement_id}", response_model=MessageOut)
def delete_measurement(measurement_id: str, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    try:
        meas_svc.delete_measurement(db, measurement_id)
    except SQLAlchemyError as e:
        db.rollback()
        emit_error("api_measurement_delete_failed", actor=user.id, measurement_id=measurement_id, error=repr(e))
        raise IntegrityError("Failed to delete measurement")
    return {"message": "Measurement deleted"}
