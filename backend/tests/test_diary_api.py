from conftest import make_client


ENTRY = {
    "date": "2024-05-01",
    "content": "Hello",
    "weather": "sunny",
    "mood": "good",
    "tags": ["trip"],
    "images": [],
    "isPublic": False,
}


def _create(client, user_id="u1", entry=None):
    response = client.post("/api/diary", json={"userId": user_id, "entry": entry or ENTRY})
    assert response.status_code == 200
    return response.json()["entryId"]


class TestGetDiaries:

    def test_missing_user_id_is_400(self, client):
        response = client.get("/api/diary")
        assert response.status_code == 400

    def test_lists_created_entries(self, client):
        entry_id = _create(client)
        response = client.get("/api/diary", params={"userId": "u1"})
        assert response.status_code == 200

        entries = response.json()
        assert len(entries) == 1
        assert entries[0]["id"] == entry_id
        assert entries[0]["date"] == "2024-05-01"
        assert entries[0]["content"] == "Hello"
        assert entries[0]["userId"] == "u1"
        assert entries[0]["day"] == "2024-05-01"

    def test_date_filter_returns_single_entry_or_null(self, client):
        entry_id = _create(client)
        found = client.get("/api/diary", params={"userId": "u1", "date": "2024-05-01"})
        assert found.json()["id"] == entry_id

        missing = client.get("/api/diary", params={"userId": "u1", "date": "2024-05-02"})
        assert missing.status_code == 200
        assert missing.json() is None

    def test_backend_failure_is_500(self, failing_client):
        response = failing_client.get("/api/diary", params={"userId": "u1"})
        assert response.status_code == 500


class TestCreateDiary:

    def test_returns_success_and_id(self, client):
        response = client.post("/api/diary", json={"userId": "u1", "entry": ENTRY})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["entryId"]

    def test_missing_fields_are_400_without_mutation(self, client, store):
        assert client.post("/api/diary", json={"entry": ENTRY}).status_code == 400
        assert client.post("/api/diary", json={"userId": "u1"}).status_code == 400
        assert store.list_entries("u1") == []

    def test_malformed_body_is_400(self, client, store):
        response = client.post(
            "/api/diary", content="not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert store.list_entries("u1") == []

    def test_backend_failure_is_500(self, failing_client):
        response = failing_client.post("/api/diary", json={"userId": "u1", "entry": ENTRY})
        assert response.status_code == 500


class TestUpdateDiary:

    def test_partial_update(self, client):
        entry_id = _create(client)
        response = client.put(
            "/api/diary",
            json={"userId": "u1", "entryId": entry_id, "updatedData": {"content": "Edited"}},
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}

        entry = client.get("/api/diary", params={"userId": "u1"}).json()[0]
        assert entry["content"] == "Edited"
        assert entry["tags"] == ["trip"]
        assert entry["weather"] == "sunny"
        assert entry["mood"] == "good"
        assert entry["isPublic"] is False

    def test_missing_fields_are_400_without_mutation(self, client):
        entry_id = _create(client)
        for body in (
            {"entryId": entry_id, "updatedData": {"content": "x"}},
            {"userId": "u1", "updatedData": {"content": "x"}},
            {"userId": "u1", "entryId": entry_id},
        ):
            assert client.put("/api/diary", json=body).status_code == 400
        assert client.get("/api/diary", params={"userId": "u1"}).json()[0]["content"] == "Hello"

    def test_unknown_entry_is_500(self, client):
        response = client.put(
            "/api/diary",
            json={"userId": "u1", "entryId": "missing", "updatedData": {"content": "x"}},
        )
        assert response.status_code == 500

    def test_unknown_field_is_400(self, client):
        entry_id = _create(client)
        response = client.put(
            "/api/diary",
            json={"userId": "u1", "entryId": entry_id, "updatedData": {"owner": "u2"}},
        )
        assert response.status_code == 400


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_health_reports_session_provider(repository, identity):
    from app.core.db import get_session_provider
    from app.main import app
    from app.services.session_provider import SessionProvider

    provider = SessionProvider(identity, on_sign_in=repository.ensure_profile)
    app.dependency_overrides[get_session_provider] = lambda: provider
    try:
        # with 块会触发 lifespan
        with make_client(repository, identity) as test_client:
            assert test_client.get("/health").json()["session"] == "started"
        assert provider.started is False
    finally:
        app.dependency_overrides.clear()


class TestEntryValues:

    def test_unknown_weather_and_mood_are_400(self, client, store):
        for entry in (
            {**ENTRY, "weather": "hail"},
            {**ENTRY, "mood": "ecstatic"},
        ):
            response = client.post("/api/diary", json={"userId": "u1", "entry": entry})
            assert response.status_code == 400
        assert store.list_entries("u1") == []

    def test_editor_only_weather_is_rejected(self, client, store):
        response = client.post("/api/diary", json={"userId": "u1", "entry": {**ENTRY, "weather": "snowy"}})
        assert response.status_code == 400
        assert store.list_entries("u1") == []

    def test_update_rejects_unknown_values(self, client):
        entry_id = _create(client)
        for patch in ({"weather": "partlyCloudy"}, {"weather": "hail"}, {"mood": "ecstatic"}):
            response = client.put("/api/diary", json={"userId": "u1", "entryId": entry_id, "updatedData": patch})
            assert response.status_code == 400

        entry = client.get("/api/diary", params={"userId": "u1"}).json()[0]
        assert entry["weather"] == "sunny"
        assert entry["mood"] == "good"

    def test_bad_timestamp_row_does_not_break_listing(self, client, store):
        _create(client)
        store.insert_entry("u1", {"date": {"_seconds": 1714521600, "_nanoseconds": "x"}, "content": "broken"})

        response = client.get("/api/diary", params={"userId": "u1"})
        assert response.status_code == 200
        by_content = {e["content"]: e for e in response.json()}
        assert by_content["broken"]["date"] is None
        assert by_content["broken"]["day"] is None
        assert by_content["Hello"]["day"] == "2024-05-01"

    def test_empty_entry_and_patch_are_400(self, client, store):
        assert client.post("/api/diary", json={"userId": "u1", "entry": {}}).status_code == 400
        assert store.list_entries("u1") == []

        entry_id = _create(client)
        response = client.put("/api/diary", json={"userId": "u1", "entryId": entry_id, "updatedData": {}})
        assert response.status_code == 400
