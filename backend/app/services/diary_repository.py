"""
Entry repository: the only place that talks to the diary document store.

Every call is one round trip to the store, run in a worker thread and bounded
by STORE_TIMEOUT_SECONDS. Backend failures are logged and returned as a failed
``Result``; they never escape as exceptions.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from app.config import DEFAULT_USERNAME, STORE_TIMEOUT_SECONDS
from ..core.errors import BackendError, DiaryError, NotConfiguredError, StoreTimeoutError, ValidationError
from ..core.result import Result
from ..models.diary import DiaryEntry, DiaryEntryCreate, DiaryEntryUpdate
from ..models.user import SessionUser
from .document_store import DiaryStore, Row

logger = logging.getLogger(__name__)

# DiaryEntry 字段 → 表列名
FIELD_COLUMNS = {
    "date": "date",
    "content": "content",
    "images": "images",
    "tags": "tags",
    "weather": "weather",
    "mood": "mood",
    "isPublic": "is_public",
    "isLiked": "is_liked",
}
COLUMN_FIELDS = {column: field for field, column in FIELD_COLUMNS.items()}


def row_to_entry(row: Row) -> DiaryEntry:
    data = {COLUMN_FIELDS.get(key, key): value for key, value in row.items()}
    data["id"] = str(row.get("id", ""))
    data["userId"] = str(row.get("user_id", "") or "")
    data["createdAt"] = row.get("created_at")
    data.pop("user_id", None)
    data.pop("created_at", None)
    return DiaryEntry(**data)


def fields_to_columns(fields: Mapping[str, Any]) -> Row:
    """Translate camelCase entry fields to column names; TimestampDate keeps its wire keys."""
    columns = {}
    for field, value in fields.items():
        if hasattr(value, "model_dump"):
            value = value.model_dump(by_alias=True)
        columns[FIELD_COLUMNS[field]] = value
    return columns


class DiaryRepository:
    def __init__(self, store: DiaryStore, timeout: float = STORE_TIMEOUT_SECONDS):
        self.store = store
        self.timeout = timeout

    async def _call(self, func: Callable, *args):
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise StoreTimeoutError(f"Document store did not respond within {self.timeout}s") from e

    async def list_entries(self, user_id: Optional[str]) -> Result[List[DiaryEntry]]:
        """All entries of a user, in the order the store returns them."""
        if not user_id:
            raise NotConfiguredError("User ID is required")

        try:
            rows = await self._call(self.store.list_entries, user_id)
            entries = [row_to_entry(row) for row in rows]
            logger.info(f"✅ Loaded {len(entries)} diary entries for user {user_id}")
            return Result.success(entries)
        except DiaryError as e:
            logger.error(f"❌ list_entries failed for user {user_id}: {e}")
            return Result.failure(e)
        except Exception as e:
            logger.error(f"❌ list_entries failed for user {user_id}: {e}", exc_info=True)
            return Result.failure(BackendError(str(e)))

    async def get_by_date(self, user_id: str, date: str) -> Result[Optional[DiaryEntry]]:
        """
        First entry whose stored ``date`` equals ``date`` exactly.

        Rows stored with a timestamp-shaped date never match a string query;
        success with ``None`` means "no entry for that day".
        """
        logger.info(f"📡 Fetching diary entry: user={user_id}, date={date}")
        try:
            rows = await self._call(self.store.find_entries, user_id, "date", date)
            if not rows:
                return Result.success(None)
            return Result.success(row_to_entry(rows[0]))
        except DiaryError as e:
            logger.error(f"❌ get_by_date failed: user={user_id}, date={date}, error={e}")
            return Result.failure(e)
        except Exception as e:
            logger.error(f"❌ get_by_date failed: user={user_id}, date={date}, error={e}", exc_info=True)
            return Result.failure(BackendError(str(e)))

    async def create_entry(
        self, user_id: str, entry: Union[DiaryEntryCreate, Mapping[str, Any]]
    ) -> Result[str]:
        """Insert a new entry owned by ``user_id``; returns the store-assigned id."""
        try:
            if not isinstance(entry, DiaryEntryCreate):
                entry = DiaryEntryCreate(**entry)
        except PydanticValidationError as e:
            return Result.failure(ValidationError(f"Invalid diary entry: {e}"))

        row = fields_to_columns({field: getattr(entry, field) for field in FIELD_COLUMNS})
        row["created_at"] = datetime.now(timezone.utc)

        try:
            entry_id = await self._call(self.store.insert_entry, user_id, row)
            logger.info(f"✅ Diary entry created: id={entry_id}, user={user_id}")
            return Result.success(entry_id)
        except DiaryError as e:
            logger.error(f"❌ create_entry failed for user {user_id}: {e}")
            return Result.failure(e)
        except Exception as e:
            logger.error(f"❌ create_entry failed for user {user_id}: {e}", exc_info=True)
            return Result.failure(BackendError(str(e)))

    async def update_entry(
        self, user_id: str, entry_id: str, fields: Union[DiaryEntryUpdate, Mapping[str, Any]]
    ) -> Result[bool]:
        """Merge only the supplied fields into an existing entry."""
        if isinstance(fields, DiaryEntryUpdate):
            patch = {field: getattr(fields, field) for field in fields.model_fields_set}
        else:
            unknown = sorted(set(fields) - set(FIELD_COLUMNS))
            if unknown:
                return Result.failure(ValidationError(f"Unknown diary fields: {', '.join(unknown)}"))
            try:
                parsed = DiaryEntryUpdate(**fields)
            except PydanticValidationError as e:
                return Result.failure(ValidationError(f"Invalid diary fields: {e}"))
            patch = {field: getattr(parsed, field) for field in fields}

        if not patch:
            return Result.failure(ValidationError("No fields to update"))

        try:
            await self._call(self.store.update_entry, user_id, entry_id, fields_to_columns(patch))
            logger.info(f"✅ Diary entry {entry_id} updated: fields={sorted(patch)}")
            return Result.success(True)
        except DiaryError as e:
            logger.error(f"❌ update_entry failed: id={entry_id}, user={user_id}, error={e}")
            return Result.failure(e)
        except Exception as e:
            logger.error(f"❌ update_entry failed: id={entry_id}, user={user_id}, error={e}", exc_info=True)
            return Result.failure(BackendError(str(e)))

    async def ensure_profile(self, user: SessionUser) -> Result[bool]:
        """Create the user's profile document on first sign-in. Value is True when created."""
        try:
            existing = await self._call(self.store.get_profile, user.uid)
            if existing:
                return Result.success(False)
            await self._call(self.store.insert_profile, {
                "id": user.uid,
                "email": user.email,
                "username": user.displayName or DEFAULT_USERNAME,
                "created_at": datetime.now(timezone.utc),
            })
            logger.info(f"✅ Profile created for user {user.uid}")
            return Result.success(True)
        except DiaryError as e:
            logger.error(f"❌ ensure_profile failed for user {user.uid}: {e}")
            return Result.failure(e)
        except Exception as e:
            logger.error(f"❌ ensure_profile failed for user {user.uid}: {e}", exc_info=True)
            return Result.failure(BackendError(str(e)))
