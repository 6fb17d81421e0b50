"""
Edit/create form controller for a single diary day.

loading → idle → saving → idle (failure) | saved (success)

The controller loads the entry stored under the target date string, keeps the
draft fields, and on save either updates that entry or creates a new one.
"""
import logging
import re
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from app.config import EDITOR_WEATHER_OPTIONS, FETCH_ERROR_MESSAGE, MOOD_OPTIONS, SAVE_ERROR_MESSAGE
from ..core.errors import BackendError, ValidationError
from ..core.result import Result
from ..models.diary import DiaryEntry
from .diary_repository import DiaryRepository
from .entry_view import entry_path

logger = logging.getLogger(__name__)

TAG_SEPARATORS = re.compile(r"[,、]")


class FormState(str, Enum):
    LOADING = "loading"
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"


def split_tags(text: Optional[str]) -> List[str]:
    """Split on ASCII and ideographic commas, trim, drop empties."""
    if not text:
        return []
    return [tag.strip() for tag in TAG_SEPARATORS.split(text) if tag.strip()]


class DiaryFormController:
    def __init__(self, repository: DiaryRepository, user_id: Optional[str], target_date: Optional[str]):
        self.repository = repository
        self.user_id = user_id
        self.target_date = target_date

        self.state = FormState.LOADING
        self.entry: Optional[DiaryEntry] = None
        self.error: Optional[str] = None
        # 读取失败时不能当作“当天没有日记”去新建
        self.load_failed = False

        self.content = ""
        self.weather = "sunny"
        self.mood = "good"
        self.tags_text = ""
        self.images: List[str] = []
        self.is_public = False

        self._alive = True

    @property
    def is_new(self) -> bool:
        return self.entry is None

    @property
    def tags(self) -> List[str]:
        return split_tags(self.tags_text)

    def dispose(self) -> None:
        """Stop accepting results; anything still in flight is dropped."""
        self._alive = False

    async def load(self) -> None:
        if not self.user_id or not self.target_date:
            self.state = FormState.IDLE
            return

        result = await self.repository.get_by_date(self.user_id, self.target_date)
        if not self._alive:
            logger.debug(f"Form for {self.target_date} disposed before load finished")
            return

        if not result.ok:
            logger.error(f"❌ Error fetching diary entry for {self.target_date}: {result.error}")
            self.load_failed = True
            self.error = FETCH_ERROR_MESSAGE
        elif result.value is not None:
            entry = result.value
            self.entry = entry
            self.content = entry.content
            # 旧数据里的未知取值回落到默认值，否则保存时会被拒绝
            self.weather = entry.weather if entry.weather in EDITOR_WEATHER_OPTIONS else "sunny"
            self.mood = entry.mood if entry.mood in MOOD_OPTIONS else "good"
            self.tags_text = ", ".join(entry.tags)
            self.images = list(entry.images)
            self.is_public = entry.isPublic
        self.state = FormState.IDLE

    def apply(
        self,
        content: Optional[str] = None,
        weather: Optional[str] = None,
        mood: Optional[str] = None,
        tags: Optional[str] = None,
        is_public: Optional[bool] = None,
        new_images: Iterable[str] = (),
    ) -> None:
        """Update draft fields; ``None`` leaves a field as it is."""
        if weather is not None and weather not in EDITOR_WEATHER_OPTIONS:
            raise ValidationError(f"Unknown weather: {weather}")
        if mood is not None and mood not in MOOD_OPTIONS:
            raise ValidationError(f"Unknown mood: {mood}")

        if content is not None:
            self.content = content
        if weather is not None:
            self.weather = weather
        if mood is not None:
            self.mood = mood
        if tags is not None:
            self.tags_text = tags
        if is_public is not None:
            self.is_public = is_public
        self.add_images(new_images)

    def add_images(self, refs: Iterable[str]) -> None:
        self.images.extend(ref for ref in refs if ref)

    def draft(self) -> Dict[str, Any]:
        return {
            "date": self.target_date,
            "entryId": self.entry.id if self.entry else None,
            "isNew": self.is_new,
            "state": self.state.value,
            "content": self.content,
            "weather": self.weather,
            "mood": self.mood,
            "tags": self.tags_text,
            "images": list(self.images),
            "isPublic": self.is_public,
            "error": self.error,
        }

    async def save(self) -> Result[str]:
        """Write the draft. On success the value is the path of the entry's detail view."""
        if self.state == FormState.SAVING:
            return Result.failure(ValidationError("Save already in progress"))
        if self.state == FormState.LOADING:
            return Result.failure(ValidationError("Entry is still loading"))
        if not self.user_id or not self.target_date:
            return Result.failure(ValidationError("User ID and date are required"))
        if self.load_failed:
            return Result.failure(BackendError(FETCH_ERROR_MESSAGE))

        self.state = FormState.SAVING
        self.error = None
        fields = {
            "content": self.content,
            "weather": self.weather,
            "mood": self.mood,
            "tags": self.tags,
            "images": list(self.images),
            "isPublic": self.is_public,
        }

        if self.entry is not None:
            result = await self.repository.update_entry(self.user_id, self.entry.id, fields)
        else:
            result = await self.repository.create_entry(
                self.user_id, {"date": self.target_date, **fields, "isLiked": False}
            )

        if not self._alive:
            return result if not result.ok else Result.success(entry_path(self.target_date))

        if not result.ok:
            logger.error(f"❌ Error saving diary entry for {self.target_date}: {result.error}")
            self.state = FormState.IDLE
            self.error = SAVE_ERROR_MESSAGE
            return Result.failure(result.error)

        self.state = FormState.SAVED
        logger.info(f"✅ Diary saved for {self.target_date} ({'created' if self.is_new else 'updated'})")
        return Result.success(entry_path(self.target_date))
