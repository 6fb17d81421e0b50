from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional
import logging

from app.config import WEATHER_OPTIONS
from ..models.diary import DiaryCreateRequest, DiaryUpdateRequest
from ..core.db import get_repository
from ..core.errors import ValidationError
from ..services.diary_repository import DiaryRepository

router = APIRouter()
logger = logging.getLogger(__name__)


def _check_weather(fields):
    # partlyCloudy / snowy 只能由编辑页写入
    weather = fields.get("weather")
    if weather is not None and weather not in WEATHER_OPTIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown weather: {weather}")


def _raise_for_failure(error, detail: str):
    if isinstance(error, ValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message or detail)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get("")
async def get_diaries(
    userId: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="YYYY-MM-DD; returns the single entry stored under this date"),
    repository: DiaryRepository = Depends(get_repository),
):
    """
    获取用户的全部日记；带 date 参数时只返回该日期的那一篇（没有则为 null）。
    """
    if not userId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User ID is required")

    if date:
        result = await repository.get_by_date(userId, date)
        if not result.ok:
            _raise_for_failure(result.error, "Failed to fetch diary entry")
        return result.value.to_public() if result.value else None

    result = await repository.list_entries(userId)
    if not result.ok:
        _raise_for_failure(result.error, "Failed to fetch diary entries")
    return [entry.to_public() for entry in result.value]


@router.post("")
async def create_diary(
    body: DiaryCreateRequest,
    repository: DiaryRepository = Depends(get_repository),
):
    """
    为指定用户创建一篇新日记。
    """
    if not body.userId or not body.entry:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID and entry data are required",
        )

    _check_weather(body.entry)
    logger.info(f"Diary creation request received - User: {body.userId}")
    result = await repository.create_entry(body.userId, body.entry)
    if not result.ok:
        _raise_for_failure(result.error, "Failed to create diary entry")
    return {"success": True, "entryId": result.value}


@router.put("")
async def update_diary(
    body: DiaryUpdateRequest,
    repository: DiaryRepository = Depends(get_repository),
):
    """
    只更新 updatedData 中给出的字段。
    """
    if not body.userId or not body.entryId or not body.updatedData:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID, entry ID, and updated data are required",
        )

    _check_weather(body.updatedData)
    logger.info(f"📝 UPDATE diary request - Diary ID: {body.entryId}, User: {body.userId}")
    result = await repository.update_entry(body.userId, body.entryId, body.updatedData)
    if not result.ok:
        _raise_for_failure(result.error, "Failed to update diary entry")
    return {"success": True}
