# dashboard/core/schemas.py
"""
入参/出参模型（pydantic v2），与存储、传输无关：
- 线上字段一律 camelCase（minValue / seriesId / createdAt ...），Python 属性保持 snake_case。
- 插入模型做“必填 + 单字段约束”，InsertSeries 额外校验 maxValue > minValue（错误定位到 maxValue）。
- 更新模型全部可选（不传 = 不改，显式 null 拒绝）；单字段约束相同，跨字段约束在服务层基于合并后的记录复核。
- 数值字段走 strict：只收 JSON 数字，不把 "150" / true 转成浮点。
- LoginIn 与 InsertUser 的长度规则不同，刻意分开，不要合并。
- 出参模型里没有任何 password 字段，User 序列化天然不带口令。
"""
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import (
    AllowInfNan, BaseModel, BeforeValidator, ConfigDict, Field, Strict, field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from dashboard.core.models_user import UserRole

RANGE_MESSAGE = "Max value must be greater than min value"


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_iso_datetime(v):
    """只接受 ISO-8601 日期时间字符串（必须带时间部分）；无时区视为 UTC。"""
    if isinstance(v, datetime):
        return to_naive_utc(v)
    if not isinstance(v, str) or "T" not in v:
        raise PydanticCustomError("datetime_format", "Invalid datetime")
    try:
        dt = datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
    except ValueError:
        raise PydanticCustomError("datetime_format", "Invalid datetime")
    return to_naive_utc(dt)


IsoDatetime = Annotated[datetime, BeforeValidator(parse_iso_datetime)]

# 只收真正的数字：字符串 "150"、布尔 true 都拒绝；整数照收
FiniteFloat = Annotated[float, Strict(), AllowInfNan(False)]


class _Patch(_Wire):
    """可选字段可以不传，但显式传 null 算非法值。"""

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise PydanticCustomError("null_value", "Value must not be null")
        return v


def _utc_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.replace(tzinfo=timezone.utc).isoformat()


# ---------- users / auth ----------

class InsertUser(_Wire):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginIn(_Wire):
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)


class ChangePasswordIn(_Wire):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class UserOut(_Wire):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    username: str
    role: UserRole
    created_at: Optional[datetime] = None

    @field_serializer("created_at")
    def ser_created(self, v): return _utc_iso(v)


class RegisterOut(BaseModel):
    id: str
    username: str


class MessageOut(BaseModel):
    message: str


# ---------- series ----------

class InsertSeries(_Wire):
    name: str = Field(min_length=1)
    min_value: FiniteFloat
    max_value: FiniteFloat
    color: str
    icon: str

    @field_validator("max_value")
    @classmethod
    def check_range(cls, v, info):
        lo = info.data.get("min_value")
        if lo is not None and v <= lo:
            raise PydanticCustomError("series_range", RANGE_MESSAGE)
        return v


class UpdateSeries(_Patch):
    name: Optional[str] = Field(default=None, min_length=1)
    min_value: Optional[FiniteFloat] = None
    max_value: Optional[FiniteFloat] = None
    color: Optional[str] = None
    icon: Optional[str] = None


class SeriesOut(_Wire):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    name: str
    min_value: float
    max_value: float
    color: str
    icon: str
    created_by_id: str
    created_at: datetime

    @field_serializer("created_at")
    def ser_created(self, v): return _utc_iso(v)


# ---------- measurements ----------

class InsertMeasurement(_Patch):
    value: FiniteFloat
    series_id: str = Field(min_length=1)
    timestamp: Optional[IsoDatetime] = None


class UpdateMeasurement(_Patch):
    value: Optional[FiniteFloat] = None
    timestamp: Optional[IsoDatetime] = None


class MeasurementOut(_Wire):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    value: float
    timestamp: datetime
    series_id: str
    created_by_id: str
    created_at: datetime

    @field_serializer("timestamp", "created_at")
    def ser_ts(self, v): return _utc_iso(v)


# ---------- helpers ----------

def field_errors(exc) -> List[dict]:
    """把 pydantic / FastAPI 的校验错误拍平成 [{"field","message"}]。"""
    out = []
    for e in exc.errors():
        loc = [str(p) for p in e.get("loc", ()) if p not in ("body", "query", "path")]
        out.append({"field": ".".join(loc), "message": e.get("msg", "Invalid value")})
    return out
