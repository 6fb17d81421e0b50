"""
Document store backends.

Entries are stored per user: every row carries ``user_id`` and every query is
scoped by it. Rows use the table's snake_case column names; translating them
to ``DiaryEntry`` is the repository's job.

- SupabaseDiaryStore : Supabase tables (production)
- InMemoryDiaryStore : process-local dicts (mock mode, tests, demo seeding)

All methods are blocking; the repository runs them in worker threads.
"""
import copy
import json
import logging
import threading
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Protocol

from app.config import DIARY_TABLE, PROFILE_TABLE
from ..core.errors import BackendError, DocumentNotFoundError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

# 以 jsonb 存储的列，等值过滤时需要按 JSON 字面量比较
JSON_COLUMNS = {"date", "images", "tags"}


class DiaryStore(Protocol):
    def list_entries(self, user_id: str) -> List[Row]: ...

    def find_entries(self, user_id: str, column: str, value: Any) -> List[Row]: ...

    def insert_entry(self, user_id: str, row: Row) -> str: ...

    def update_entry(self, user_id: str, entry_id: str, fields: Row) -> None: ...

    def get_profile(self, user_id: str) -> Optional[Row]: ...

    def insert_profile(self, row: Row) -> None: ...


def _jsonable(row: Row) -> Row:
    out = {}
    for key, value in row.items():
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        out[key] = value
    return out


class SupabaseDiaryStore:
    def __init__(self, client, diary_table: str = DIARY_TABLE, profile_table: str = PROFILE_TABLE):
        self.client = client
        self.diary_table = diary_table
        self.profile_table = profile_table

    def list_entries(self, user_id: str) -> List[Row]:
        response = self.client.table(self.diary_table).select("*").eq("user_id", user_id).execute()
        return response.data or []

    def find_entries(self, user_id: str, column: str, value: Any) -> List[Row]:
        if column in JSON_COLUMNS:
            value = json.dumps(value, ensure_ascii=False)
        response = (
            self.client.table(self.diary_table)
            .select("*")
            .eq("user_id", user_id)
            .eq(column, value)
            .limit(1)
            .execute()
        )
        return response.data or []

    def insert_entry(self, user_id: str, row: Row) -> str:
        response = self.client.table(self.diary_table).insert(_jsonable({**row, "user_id": user_id})).execute()
        if not response.data:
            raise BackendError("No data returned from database insert")
        return str(response.data[0]["id"])

    def update_entry(self, user_id: str, entry_id: str, fields: Row) -> None:
        response = (
            self.client.table(self.diary_table)
            .update(_jsonable(fields))
            .eq("id", entry_id)
            .eq("user_id", user_id)
            .execute()
        )
        if not response.data:
            raise DocumentNotFoundError(f"Diary entry {entry_id} not found for user {user_id}")

    def get_profile(self, user_id: str) -> Optional[Row]:
        response = self.client.table(self.profile_table).select("*").eq("id", user_id).limit(1).execute()
        return response.data[0] if response.data else None

    def insert_profile(self, row: Row) -> None:
        self.client.table(self.profile_table).insert(_jsonable(row)).execute()


class InMemoryDiaryStore:
    """Dict-backed store with the same per-user semantics as the Supabase tables."""

    def __init__(self):
        self._entries: Dict[str, Dict[str, Row]] = {}
        self._profiles: Dict[str, Row] = {}
        self._lock = threading.Lock()

    def list_entries(self, user_id: str) -> List[Row]:
        with self._lock:
            return [copy.deepcopy(row) for row in self._entries.get(user_id, {}).values()]

    def find_entries(self, user_id: str, column: str, value: Any) -> List[Row]:
        with self._lock:
            rows = self._entries.get(user_id, {}).values()
            return [copy.deepcopy(row) for row in rows if row.get(column) == value][:1]

    def insert_entry(self, user_id: str, row: Row) -> str:
        entry_id = str(uuid.uuid4())
        with self._lock:
            self._entries.setdefault(user_id, {})[entry_id] = {
                **copy.deepcopy(row),
                "id": entry_id,
                "user_id": user_id,
            }
        return entry_id

    def update_entry(self, user_id: str, entry_id: str, fields: Row) -> None:
        with self._lock:
            row = self._entries.get(user_id, {}).get(entry_id)
            if row is None:
                raise DocumentNotFoundError(f"Diary entry {entry_id} not found for user {user_id}")
            row.update(copy.deepcopy(fields))

    def get_profile(self, user_id: str) -> Optional[Row]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return dict(profile) if profile else None

    def insert_profile(self, row: Row) -> None:
        with self._lock:
            self._profiles[row["id"]] = dict(row)
