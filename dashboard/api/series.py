# dashboard/api/series.py
"""
Series API（读公开，写仅 admin）
------------------------------------
- GET    /series        全量列表，created_at 倒序
- POST   /series        新建（201），owner = 当前管理员
- PUT    /series/{id}   部分更新；合并后仍需 maxValue > minValue
- DELETE /series/{id}   删除；其 measurements 由数据库级联删除

错误体统一为 {"message": ...}；存储层细节（SQL、堆栈）只进日志不回给客户端。
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dashboard.api.deps.auth import require_admin
from dashboard.core.errors import IntegrityError, NotFoundError, ValidationError
from dashboard.core.models_user import User
from dashboard.core.schemas import InsertSeries, MessageOut, SeriesOut, UpdateSeries
from dashboard.infra.db import get_db
from dashboard.infra.logger import emit, emit_error
from dashboard.services import series as series_svc

router = APIRouter()


@router.get("/series", response_model=List[SeriesOut])
def list_series(db: Session = Depends(get_db)):
    rows = series_svc.get_all_series(db)
    emit("api_series_list", count=len(rows))
    return rows


@router.post("/series", response_model=SeriesOut, status_code=status.HTTP_201_CREATED)
def create_series(body: InsertSeries, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    try:
        return series_svc.create_series(db, body, user.id)
    except SQLAlchemyError as e:
        emit_error("api_series_create_failed", actor=user.id, error=repr(e))
        raise ValidationError("Failed to create series")


@router.put("/series/{series_id}", response_model=SeriesOut)
def update_series(
    series_id: str,
    body: UpdateSeries,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    try:
        s = series_svc.update_series(db, series_id, body)
    except SQLAlchemyError as e:
        emit_error("api_series_update_failed", actor=user.id, series_id=series_id, error=repr(e))
        raise ValidationError("Failed to update series")
    if s is None:
        raise NotFoundError("Series not found")
    return s


@router.delete("/series/{series_id}", response_model=MessageOut)
def delete_series(series_id: str, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    try:
        series_svc.delete_series(db, series_id)
    except SQLAlchemyError as e:
        db.rollback()
        emit_error("api_series_delete_failed", actor=user.id, series_id=series_id, error=repr(e))
        raise IntegrityError("Failed to delete series")
    return {"message": "Series deleted"}
