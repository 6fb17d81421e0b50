"""
View endpoints for the browser client: calendar grid, month list, entry detail,
day navigation and the edit form.
"""
from datetime import date
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.config import FETCH_ERROR_MESSAGE, SAVE_ERROR_MESSAGE
from ..core.db import get_repository
from ..core.dates import parse_month
from ..core.errors import ValidationError
from ..models.diary import DiaryEntry, DiaryFormRequest
from ..services.diary_form import DiaryFormController
from ..services.diary_repository import DiaryRepository
from ..services import entry_view

router = APIRouter()
logger = logging.getLogger(__name__)


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User ID is required")
    return user_id


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid date: {value}")


def _parse_month(value: Optional[str]) -> date:
    try:
        return parse_month(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid month: {value}")


async def _load_entries(repository: DiaryRepository, user_id: str) -> List[DiaryEntry]:
    result = await repository.list_entries(user_id)
    if not result.ok:
        logger.error(f"❌ View fetch failed for user {user_id}: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": FETCH_ERROR_MESSAGE, "retryable": True},
        )
    return result.value


@router.get("/calendar")
async def calendar_view(
    userId: Optional[str] = Query(None),
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    public: bool = Query(False),
    repository: DiaryRepository = Depends(get_repository),
):
    user_id = _require_user(userId)
    current = _parse_month(month)
    entries = await _load_entries(repository, user_id)
    return {
        "month": current.strftime("%Y-%m"),
        "isPublicView": public,
        "weeks": entry_view.calendar_month(entries, current, public),
    }


@router.get("/list")
async def list_view(
    userId: Optional[str] = Query(None),
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    public: bool = Query(False),
    repository: DiaryRepository = Depends(get_repository),
):
    user_id = _require_user(userId)
    current = _parse_month(month)
    entries = await _load_entries(repository, user_id)
    return {
        "month": current.strftime("%Y-%m"),
        "isPublicView": public,
        "entries": [entry_view.present_entry(e) for e in entry_view.entries_for_month(entries, current, public)],
    }


@router.get("/entries/{day}")
async def entry_detail(
    day: str,
    userId: Optional[str] = Query(None),
    repository: DiaryRepository = Depends(get_repository),
):
    """某一天的日记详情；没有时告诉前端跳转到编辑页"""
    user_id = _require_user(userId)
    target = _parse_day(day)
    entries = await _load_entries(repository, user_id)

    entry = entry_view.find_entry_for_date(entries, target)
    if entry is None:
        return {"entry": None, "redirect": entry_view.edit_path(day)}
    # isLiked 只在详情页本地切换，不读存储中的值
    entry = entry.model_copy(update={"isLiked": False})
    return {"entry": entry_view.present_entry(entry), "redirect": None}


@router.get("/navigate/{day}")
async def navigate(
    day: str,
    userId: Optional[str] = Query(None),
    repository: DiaryRepository = Depends(get_repository),
):
    """点击日历某天时的跳转目标"""
    user_id = _require_user(userId)
    _parse_day(day)
    result = await repository.get_by_date(user_id, day)
    if not result.ok:
        logger.error(f"❌ Navigation lookup failed for {day}: {result.error}")
    return {"path": entry_view.navigation_path(day, result.ok and result.value is not None)}


@router.get("/edit/{day}")
async def edit_form(
    day: str,
    userId: Optional[str] = Query(None),
    repository: DiaryRepository = Depends(get_repository),
):
    user_id = _require_user(userId)
    _parse_day(day)
    controller = DiaryFormController(repository, user_id, day)
    await controller.load()
    return controller.draft()


@router.post("/edit/{day}")
async def save_form(
    day: str,
    body: DiaryFormRequest,
    repository: DiaryRepository = Depends(get_repository),
):
    user_id = _require_user(body.userId)
    _parse_day(day)
    controller = DiaryFormController(repository, user_id, day)
    await controller.load()

    try:
        controller.apply(
            content=body.content,
            weather=body.weather,
            mood=body.mood,
            tags=body.tags,
            is_public=body.isPublic,
            new_images=body.newImages,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    result = await controller.save()
    if not result.ok:
        if controller.load_failed:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"message": FETCH_ERROR_MESSAGE, "retryable": True, "draft": controller.draft()},
            )
        if isinstance(result.error, ValidationError):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": controller.error or SAVE_ERROR_MESSAGE, "draft": controller.draft()},
        )
    return {"success": True, "redirect": result.value}
