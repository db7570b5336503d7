"""Collection endpoints."""


class TestCollections:
    async def test_create_list_delete(self, client, user_factory, auth_headers) -> None:
        user = await user_factory()
        headers = auth_headers(user)

        created = await client.post(
            "/api/v1/collections/", json={"name": "Bulls Dynasty", "description": "1991-1998"}, headers=headers,
        )
        listed = await client.get("/api/v1/collections/", headers=headers)
        deleted = await client.delete(f"/api/v1/collections/{created.json()['id']}", headers=headers)
        again = await client.delete(f"/api/v1/collections/{created.json()['id']}", headers=headers)

        assert created.status_code == 201
        assert created.json()["isPublic"] is True
        assert [c["name"] for c in listed.json()] == ["Bulls Dynasty"]
        assert deleted.json()["message"] == "Collection deleted successfully"
        assert again.status_code == 404

    async def test_delete_needs_pin_when_set(self, client, user_factory, auth_headers) -> None:
        user = await user_factory(pin="123456")
        headers = auth_headers(user)
        created = await client.post("/api/v1/collections/", json={"name": "Rookies"}, headers=headers)
        target = f"/api/v1/collections/{created.json()['id']}"

        refused = await client.delete(target, headers=headers)
        deleted = await client.request("DELETE", target, json={"pin": "123456"}, headers=headers)

        assert refused.status_code == 403
        assert deleted.status_code == 200

    async def test_others_collection(self, client, user_factory, auth_headers) -> None:
        owner = await user_factory()
        other = await user_factory()
        created = await client.post("/api/v1/collections/", json={"name": "Mine"}, headers=auth_headers(owner))

        response = await client.delete(f"/api/v1/collections/{created.json()['id']}", headers=auth_headers(other))

        assert response.status_code == 403
