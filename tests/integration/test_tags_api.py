"""Integration tests for the tag endpoints"""

import pytest


@pytest.mark.integration
class TestTagEndpoints:
    """Test tag listing, creation and deletion over HTTP"""

    async def test_create_list_delete(self, client):
        created = await client.post("/api/tags", json={"name": "JavaScript"})
        assert created.status_code == 201
        tag = created.json()
        assert (tag["name"], tag["slug"]) == ("JavaScript", "javascript")

        doc = (await client.post("/api/documents", json={"title": "Notes", "tags": ["javascript", "web"]})).json()["data"]
        listed = (await client.get("/api/tags")).json()["data"]
        assert [t["slug"] for t in listed] == ["javascript", "web"]

        deleted = await client.delete(f"/api/tags/{tag['id']}")
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Tag deleted successfully"}

        current = (await client.get(f"/api/documents/{doc['id']}")).json()["data"]
        assert current["tags"] == ["web"]

    async def test_duplicate_tag_is_422(self, client):
        await client.post("/api/tags", json={"name": "python"})

        response = await client.post("/api/tags", json={"name": "Python"})

        assert response.status_code == 422
        assert response.json()["errors"] == {"name": ["You already have a tag with this name."]}

    async def test_name_too_long_is_422(self, client):
        response = await client.post("/api/tags", json={"name": "x" * 51})
        assert response.status_code == 422

    async def test_unknown_tag_is_404(self, client):
        response = await client.delete("/api/tags/missing")
        assert response.status_code == 404
        assert response.json()["message"] == "Tag not found"
