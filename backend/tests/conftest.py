"""
共享测试夹具：内存存储、内存身份服务、以及替换了依赖的 TestClient。

运行: python -m pytest backend/tests -v
"""
from __future__ import annotations

import os
import sys
import time

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.services.diary_repository import DiaryRepository
from app.services.document_store import InMemoryDiaryStore
from app.services.identity import InMemoryIdentityProvider


class FailingStore(InMemoryDiaryStore):
    """Every call blows up, like an unreachable backend."""

    def list_entries(self, user_id):
        raise RuntimeError("backend unavailable")

    def find_entries(self, user_id, column, value):
        raise RuntimeError("backend unavailable")

    def insert_entry(self, user_id, row):
        raise RuntimeError("backend unavailable")

    def update_entry(self, user_id, entry_id, fields):
        raise RuntimeError("backend unavailable")

    def get_profile(self, user_id):
        raise RuntimeError("backend unavailable")

    def insert_profile(self, row):
        raise RuntimeError("backend unavailable")


class FailingWritesStore(InMemoryDiaryStore):
    """Reads work, writes fail."""

    def insert_entry(self, user_id, row):
        raise RuntimeError("write rejected")

    def update_entry(self, user_id, entry_id, fields):
        raise RuntimeError("write rejected")


class FailingLookupStore(InMemoryDiaryStore):
    """Date lookups fail, everything else works."""

    def find_entries(self, user_id, column, value):
        raise RuntimeError("lookup timed out")


class SlowStore(InMemoryDiaryStore):
    def list_entries(self, user_id):
        time.sleep(0.5)
        return super().list_entries(user_id)


@pytest.fixture
def store():
    return InMemoryDiaryStore()


@pytest.fixture
def repository(store):
    return DiaryRepository(store, timeout=5)


@pytest.fixture
def identity():
    provider = InMemoryIdentityProvider()
    provider.add_user("alice@example.com", "wonderland", display_name="Alice", uid="alice")
    return provider


def make_client(repository, identity=None):
    from fastapi.testclient import TestClient

    from app.core.db import get_identity, get_repository
    from app.main import app

    app.dependency_overrides[get_repository] = lambda: repository
    if identity is not None:
        app.dependency_overrides[get_identity] = lambda: identity
    return TestClient(app)


@pytest.fixture
def client(repository, identity):
    from app.main import app

    test_client = make_client(repository, identity)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client():
    from app.main import app

    test_client = make_client(DiaryRepository(FailingStore(), timeout=5))
    yield test_client
    app.dependency_overrides.clear()
