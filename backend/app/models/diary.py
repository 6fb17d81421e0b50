import datetime as dt
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.config import EDITOR_WEATHER_OPTIONS, MOOD_OPTIONS
from ..core.dates import normalize_date


class TimestampDate(BaseModel):
    """Timestamp struct as serialized by the document store."""

    model_config = ConfigDict(populate_by_name=True)

    seconds: int = Field(alias="_seconds")
    nanoseconds: int = Field(default=0, alias="_nanoseconds")

    @classmethod
    def from_datetime(cls, value: dt.datetime) -> "TimestampDate":
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt.timezone.utc)
        stamp = value.timestamp()
        return cls(seconds=int(stamp), nanoseconds=value.microsecond * 1000)


# 日期字段的两种存储形态
EntryDate = Union[str, TimestampDate]

# 写入时允许的取值；已存数据按原样读出
Weather = Literal[tuple(EDITOR_WEATHER_OPTIONS)]
Mood = Literal[tuple(MOOD_OPTIONS)]


def coerce_entry_date(value: Any) -> Optional[EntryDate]:
    """Map a raw stored ``date`` onto the tagged union; unknown shapes become None."""
    if value is None or isinstance(value, (str, TimestampDate)):
        return value
    if isinstance(value, dt.datetime):
        return TimestampDate.from_datetime(value)
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            nanos = value.get("_nanoseconds", value.get("nanoseconds", 0)) or 0
            try:
                return TimestampDate(seconds=int(seconds), nanoseconds=int(nanos))
            except (TypeError, ValueError):
                return None
    return None


class DiaryEntry(BaseModel):
    """A diary entry as the rest of the application sees it."""

    id: str
    date: Optional[EntryDate] = None
    content: str = ""
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    weather: str = "sunny"
    mood: str = "good"
    userId: str = ""
    isPublic: bool = False
    isLiked: bool = False
    createdAt: Optional[dt.datetime] = None
    # 载入时换算好的日历日，不写回存储
    day: Optional[dt.date] = None

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        return coerce_entry_date(value)

    @field_validator("images", "tags", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return value or []

    @field_validator("content", mode="before")
    @classmethod
    def _none_as_blank(cls, value):
        return "" if value is None else value

    @field_validator("weather", "mood", mode="before")
    @classmethod
    def _none_as_default(cls, value, info):
        if value is None:
            return "sunny" if info.field_name == "weather" else "good"
        return value

    @field_validator("isPublic", "isLiked", mode="before")
    @classmethod
    def _none_as_false(cls, value):
        return bool(value) if value is not None else False

    @model_validator(mode="after")
    def _normalize_day(self):
        self.day = normalize_date(self.date)
        return self

    def to_public(self) -> Dict[str, Any]:
        """JSON shape returned over HTTP (timestamp dates keep their ``_seconds`` keys)."""
        return self.model_dump(mode="json", by_alias=True)


class DiaryEntryCreate(BaseModel):
    """Fields a client supplies when creating an entry (no id, no owner)."""

    date: Optional[EntryDate] = None
    content: str = ""
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    weather: Weather = "sunny"
    mood: Mood = "good"
    isPublic: bool = False
    isLiked: bool = False

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        return coerce_entry_date(value)


class DiaryEntryUpdate(BaseModel):
    """Partial patch; only fields explicitly set are written."""

    date: Optional[EntryDate] = None
    content: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    weather: Optional[Weather] = None
    mood: Optional[Mood] = None
    isPublic: Optional[bool] = None
    isLiked: Optional[bool] = None

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        return coerce_entry_date(value)


# ── HTTP 请求体 ──────────────────────────────────────────────
# 字段全部可选：缺失时由路由返回 400 而不是 422

class DiaryCreateRequest(BaseModel):
    userId: Optional[str] = None
    entry: Optional[Dict[str, Any]] = None


class DiaryUpdateRequest(BaseModel):
    userId: Optional[str] = None
    entryId: Optional[str] = None
    updatedData: Optional[Dict[str, Any]] = None


class DiaryFormRequest(BaseModel):
    userId: Optional[str] = None
    content: Optional[str] = None
    weather: Optional[str] = None
    mood: Optional[str] = None
    tags: Optional[str] = None
    newImages: List[str] = Field(default_factory=list)
    isPublic: Optional[bool] = None
