"""
core/db.py: backend wiring.

Builds the Supabase client, the diary store, the identity provider, the
repository and the session provider once per process. With
ENABLE_MOCK_MODE=true (or no Supabase credentials in development) the
in-memory backends are used instead.

Routers depend on ``get_repository`` / ``get_identity`` / ``get_session_provider``;
tests replace them through ``app.dependency_overrides``.
"""
import logging
from functools import lru_cache

from app.config import (
    APP_ENV,
    ENABLE_MOCK_MODE,
    MOCK_USER_EMAIL,
    MOCK_USER_ID,
    MOCK_USER_NAME,
    MOCK_USER_PASSWORD,
    SUPABASE_KEY,
    SUPABASE_URL,
)
from ..services.diary_repository import DiaryRepository
from ..services.document_store import DiaryStore, InMemoryDiaryStore, SupabaseDiaryStore
from ..services.identity import IdentityProvider, InMemoryIdentityProvider, SupabaseIdentityProvider
from ..services.session_provider import SessionProvider

logger = logging.getLogger(__name__)


def use_mock_backend() -> bool:
    if ENABLE_MOCK_MODE:
        return True
    if not (SUPABASE_URL and SUPABASE_KEY):
        if APP_ENV == "development":
            logger.warning("⚠️  SUPABASE_URL / SUPABASE_KEY not set, falling back to in-memory backend")
            return True
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set outside development")
    return False


@lru_cache()
def get_supabase():
    from supabase import create_client

    client = create_client(SUPABASE_URL, SUPABASE_KEY)
    logger.info("✅ Supabase client initialized")
    return client


@lru_cache()
def get_store() -> DiaryStore:
    if use_mock_backend():
        return InMemoryDiaryStore()
    return SupabaseDiaryStore(get_supabase())


@lru_cache()
def get_identity() -> IdentityProvider:
    if use_mock_backend():
        identity = InMemoryIdentityProvider()
        identity.add_user(MOCK_USER_EMAIL, MOCK_USER_PASSWORD, display_name=MOCK_USER_NAME, uid=MOCK_USER_ID)
        return identity
    return SupabaseIdentityProvider(get_supabase())


@lru_cache()
def get_repository() -> DiaryRepository:
    return DiaryRepository(get_store())


@lru_cache()
def get_session_provider() -> SessionProvider:
    repository = get_repository()
    return SessionProvider(get_identity(), on_sign_in=repository.ensure_profile)
