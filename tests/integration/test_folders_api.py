"""Integration tests for the folder endpoints and service health"""

import pytest


@pytest.mark.integration
class TestFolderEndpoints:
    """Test folder lifecycle over HTTP"""

    async def test_create_list_move_trash_restore(self, client):
        top = (await client.post("/api/folders", json={"name": "Projects"})).json()["data"]
        child = (await client.post("/api/folders", json={"name": "Web", "parent_id": top["id"]})).json()["data"]
        other = (await client.post("/api/folders", json={"name": "Other"})).json()["data"]
        assert child["path"] == "/projects/web"

        roots = (await client.get("/api/folders")).json()["data"]
        assert [f["name"] for f in roots] == ["Other", "Projects"]
        children = (await client.get("/api/folders", params={"parent_id": top["id"]})).json()["data"]
        assert [f["id"] for f in children] == [child["id"]]

        moved = await client.put(f"/api/folders/{child['id']}/move", json={"parent_id": other["id"]})
        assert moved.status_code == 200
        assert moved.json()["data"]["path"] == "/other/web"

        refused = await client.delete(f"/api/folders/{other['id']}")
        assert refused.status_code == 422
        assert refused.json()["errors"]["children_count"] == ["1"]

        trashed = await client.delete(f"/api/folders/{other['id']}", params={"action": "delete_all"})
        assert trashed.status_code == 200
        assert (await client.get(f"/api/folders/{child['id']}")).status_code == 404

        restored = await client.post(f"/api/folders/{other['id']}/restore")
        assert restored.status_code == 200
        assert (await client.get(f"/api/folders/{child['id']}")).status_code == 200

    async def test_duplicate_sibling_name_is_422(self, client):
        await client.post("/api/folders", json={"name": "Projects"})
        response = await client.post("/api/folders", json={"name": "Projects"})
        assert response.status_code == 422
        assert "name" in response.json()["errors"]

    async def test_invalid_action_is_422(self, client):
        folder = (await client.post("/api/folders", json={"name": "Projects"})).json()["data"]
        response = await client.delete(f"/api/folders/{folder['id']}", params={"action": "shred"})
        assert response.status_code == 422

    async def test_move_into_own_subtree_is_422(self, client):
        top = (await client.post("/api/folders", json={"name": "Projects"})).json()["data"]
        child = (await client.post("/api/folders", json={"name": "Web", "parent_id": top["id"]})).json()["data"]

        response = await client.put(f"/api/folders/{top['id']}/move", json={"parent_id": child["id"]})

        assert response.status_code == 422

    async def test_restore_of_live_folder_is_404(self, client):
        folder = (await client.post("/api/folders", json={"name": "Projects"})).json()["data"]
        response = await client.post(f"/api/folders/{folder['id']}/restore")
        assert response.status_code == 404

    async def test_restore_into_taken_name_is_422(self, client):
        first = (await client.post("/api/folders", json={"name": "Work"})).json()["data"]
        await client.delete(f"/api/folders/{first['id']}")
        await client.post("/api/folders", json={"name": "Work"})

        response = await client.post(f"/api/folders/{first['id']}/restore")

        assert response.status_code == 422
        assert "name" in response.json()["errors"]

    async def test_rename_updates_paths(self, client):
        top = (await client.post("/api/folders", json={"name": "Projects"})).json()["data"]
        child = (await client.post("/api/folders", json={"name": "Web", "parent_id": top["id"]})).json()["data"]

        response = await client.put(f"/api/folders/{top['id']}", json={"name": "Clients", "icon": "briefcase"})

        assert response.status_code == 200
        assert response.json()["data"]["icon"] == "briefcase"
        assert (await client.get(f"/api/folders/{child['id']}")).json()["data"]["path"] == "/clients/web"


@pytest.mark.integration
class TestFolderBrowsing:
    """Test contents, breadcrumbs and search over HTTP"""

    async def test_contents_and_breadcrumbs(self, client):
        top = (await client.post("/api/folders", json={"name": "Projects"})).json()["data"]
        child = (await client.post("/api/folders", json={"name": "Web", "parent_id": top["id"]})).json()["data"]
        await client.post("/api/documents", json={"title": "Plan", "folder_id": top["id"]})
        await client.post("/api/documents", json={"title": "Inbox"})

        root = (await client.get("/api/folders/contents")).json()["data"]
        assert [(i["type"], i["name"]) for i in root["items"]] == [("folder", "Projects"), ("document", "Inbox")]
        assert root["items"][0]["document_count"] == 1
        assert root["current_folder"] is None

        opened = await client.get(f"/api/folders/{top['id']}/contents", params={"sort": "modified"})
        assert opened.status_code == 200
        data = opened.json()["data"]
        assert [i["name"] for i in data["items"]] == ["Web", "Plan"]
        assert data["items"][1]["size"] == "0 B"
        assert data["items"][1]["shared"] is False
        assert data["current_folder"]["id"] == top["id"]

        crumbs = (await client.get(f"/api/folders/{child['id']}/breadcrumbs")).json()["data"]
        assert [c["name"] for c in crumbs] == ["My Drive", "Projects", "Web"]

    async def test_search(self, client):
        await client.post("/api/folders", json={"name": "Recipes"})
        await client.post("/api/documents", json={"title": "Soup", "content": "recipe for soup"})

        response = await client.get("/api/folders/search", params={"query": "recipe"})

        assert response.status_code == 200
        body = response.json()
        assert [(i["type"], i["name"]) for i in body["data"]] == [("folder", "Recipes"), ("document", "Soup")]
        assert body["message"] == "Found 2 results"

        only_docs = (await client.get("/api/folders/search", params={"query": "recipe", "type": "documents"})).json()
        assert [i["type"] for i in only_docs["data"]] == ["document"]

    async def test_search_term_too_short_is_422(self, client):
        response = await client.get("/api/folders/search", params={"query": "r"})
        assert response.status_code == 422
        assert "query" in response.json()["errors"]


@pytest.mark.integration
class TestHealth:
    """Test the health and banner endpoints"""

    async def test_health_reports_database(self, client, db_client, monkeypatch):
        from marknest_service import main
        monkeypatch.setattr(main, "db_client", db_client)

        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database_connected"] is True
        assert body["cleanup_in_progress"] is False

    async def test_health_reports_running_cleanup(self, client, db_client, monkeypatch):
        from marknest_service import main
        from marknest_service.core.task_lock import TaskLock
        from marknest_service.core.trash_sweeper import DOCUMENTS_LOCK
        monkeypatch.setattr(main, "db_client", db_client)

        async with TaskLock(db_client, DOCUMENTS_LOCK).hold() as acquired:
            assert acquired
            body = (await client.get("/health")).json()

        assert body["cleanup_in_progress"] is True

    async def test_health_without_database_is_degraded(self, client, monkeypatch):
        from marknest_service import main
        monkeypatch.setattr(main, "db_client", None)

        body = (await client.get("/health")).json()

        assert body["status"] == "degraded"
        assert body["database_connected"] is False

    async def test_root(self, client):
        response = await client.get("/")
        assert response.json()["service"] == "marknest-document-service"
