import asyncio

import pytest

from app.core.errors import BackendError, ValidationError
from app.services.diary_form import DiaryFormController, FormState, split_tags
from app.services.diary_repository import DiaryRepository
from app.services.document_store import InMemoryDiaryStore

from conftest import FailingLookupStore, FailingStore, FailingWritesStore


class DisposingStore(InMemoryDiaryStore):
    """Calls ``on_write`` while an insert is in flight, like a view closed mid-save."""

    def __init__(self, fail=False):
        super().__init__()
        self.fail = fail
        self.on_write = None

    def insert_entry(self, user_id, row):
        if self.on_write:
            self.on_write()
        if self.fail:
            raise RuntimeError("write rejected")
        return super().insert_entry(user_id, row)


def run(coro):
    return asyncio.run(coro)


def loaded(repository, user_id="u1", day="2024-05-01"):
    controller = DiaryFormController(repository, user_id, day)
    run(controller.load())
    return controller


class TestSplitTags:

    def test_ascii_and_ideographic_commas(self):
        assert split_tags("trip, food、 work,, ") == ["trip", "food", "work"]

    def test_empty(self):
        assert split_tags("") == []
        assert split_tags(None) == []


class TestCreateFlow:

    def test_new_entry_is_created_with_date_and_unliked(self, repository):
        controller = loaded(repository)
        assert controller.state == FormState.IDLE
        assert controller.is_new

        controller.apply(content="Hello", weather="rainy", mood="bad", tags="trip、food", is_public=True)
        result = run(controller.save())

        assert result.ok
        assert result.value == "/diary/2024-05-01"
        assert controller.state == FormState.SAVED

        entry = run(repository.get_by_date("u1", "2024-05-01")).value
        assert entry.content == "Hello"
        assert entry.weather == "rainy"
        assert entry.mood == "bad"
        assert entry.tags == ["trip", "food"]
        assert entry.isPublic is True
        assert entry.isLiked is False

    def test_extended_weather_is_accepted_in_editor(self, repository):
        controller = loaded(repository)
        controller.apply(weather="partlyCloudy")
        assert run(controller.save()).ok
        assert run(repository.get_by_date("u1", "2024-05-01")).value.weather == "partlyCloudy"

    def test_unknown_weather_and_mood_are_rejected(self, repository):
        controller = loaded(repository)
        with pytest.raises(ValidationError):
            controller.apply(weather="hail")
        with pytest.raises(ValidationError):
            controller.apply(mood="ecstatic")


class TestEditFlow:

    def _seed(self, repository):
        return run(repository.create_entry("u1", {
            "date": "2024-05-01",
            "content": "Original",
            "weather": "cloudy",
            "mood": "neutral",
            "tags": ["a", "b"],
            "images": ["blob:1"],
            "isPublic": False,
        })).value

    def test_existing_entry_is_loaded_into_draft(self, repository):
        entry_id = self._seed(repository)
        controller = loaded(repository)
        assert not controller.is_new
        assert controller.entry.id == entry_id
        assert controller.tags_text == "a, b"
        assert controller.images == ["blob:1"]
        assert controller.draft()["weather"] == "cloudy"

    def test_save_updates_instead_of_creating(self, repository):
        self._seed(repository)
        controller = loaded(repository)
        controller.apply(content="Edited", new_images=["blob:2"])
        assert run(controller.save()).ok

        entries = run(repository.list_entries("u1")).value
        assert len(entries) == 1
        assert entries[0].content == "Edited"
        assert entries[0].images == ["blob:1", "blob:2"]
        assert entries[0].tags == ["a", "b"]

    def test_images_are_append_only(self, repository):
        self._seed(repository)
        controller = loaded(repository)
        controller.add_images(["blob:2", ""])
        controller.add_images(["blob:3"])
        assert controller.images == ["blob:1", "blob:2", "blob:3"]


class TestFailures:

    def test_save_failure_keeps_form_open_with_error(self):
        controller = loaded(DiaryRepository(FailingWritesStore()))
        controller.apply(content="Hello")
        result = run(controller.save())

        assert not result.ok
        assert controller.state == FormState.IDLE
        assert controller.error
        assert controller.content == "Hello"

    def test_load_failure_is_surfaced(self):
        controller = loaded(DiaryRepository(FailingStore()))
        assert controller.state == FormState.IDLE
        assert controller.error
        assert controller.is_new

    def test_cannot_save_while_loading(self, repository):
        controller = DiaryFormController(repository, "u1", "2024-05-01")
        result = run(controller.save())
        assert isinstance(result.error, ValidationError)

    def test_missing_user_or_date(self, repository):
        controller = loaded(repository, user_id=None)
        assert isinstance(run(controller.save()).error, ValidationError)

    def test_disposed_form_ignores_late_load(self, repository):
        run(repository.create_entry("u1", {"date": "2024-05-01", "content": "late"}))
        controller = DiaryFormController(repository, "u1", "2024-05-01")
        controller.dispose()
        run(controller.load())
        assert controller.state == FormState.LOADING
        assert controller.entry is None

    def test_failed_lookup_blocks_save(self):
        store = FailingLookupStore()
        store.insert_entry("u1", {"date": "2024-05-01", "content": "original"})
        controller = loaded(DiaryRepository(store, timeout=5))
        assert controller.load_failed

        controller.apply(content="edited")
        result = run(controller.save())

        assert isinstance(result.error, BackendError)
        assert controller.state == FormState.IDLE
        assert [row["content"] for row in store.list_entries("u1")] == ["original"]

    def test_disposed_form_ignores_late_save_failure(self):
        controller = loaded(DiaryRepository(DisposingStore(fail=True)))
        controller.repository.store.on_write = controller.dispose
        controller.apply(content="Hello")
        result = run(controller.save())

        assert not result.ok
        assert controller.state == FormState.SAVING
        assert controller.error is None

    def test_disposed_form_ignores_late_save_success(self):
        controller = loaded(DiaryRepository(DisposingStore()))
        controller.repository.store.on_write = controller.dispose
        result = run(controller.save())

        assert result.ok
        assert controller.state == FormState.SAVING
        assert controller.error is None

    def test_unknown_stored_values_fall_back_to_defaults(self, repository, store):
        store.insert_entry("u1", {"date": "2024-05-01", "weather": "hail", "mood": "???"})
        controller = loaded(repository)
        assert (controller.weather, controller.mood) == ("sunny", "good")
        assert run(controller.save()).ok
