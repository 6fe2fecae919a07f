"""
Search API Tests
Tests for: global search across kinds, type filters, suggestions
"""
from httpx import AsyncClient


class TestSearch:

    async def test_short_query_returns_nothing(self, client: AsyncClient, test_user):
        response = await client.get("/api/search", params={"q": "a"})

        assert response.status_code == 200
        assert response.json() == {"query": "a", "total": 0, "results": [], "counts": {}}

    async def test_finds_across_kinds(self, client: AsyncClient, make_user, auth_headers):
        await make_user(name="Fintech Fiona", company="PayLoop")
        await client.post("/api/pitches", json={"name": "PayLoop", "description": "UPI billing"},
                          headers=auth_headers)
        await client.post("/api/posts", json={"content": "Hiring at PayLoop this quarter"}, headers=auth_headers)

        response = await client.get("/api/search", params={"q": "payloop"})

        data = response.json()
        assert data["counts"] == {"user": 1, "job": 0, "event": 0, "article": 0, "pitch": 1, "post": 1}
        assert data["total"] == 3
        # exact title match ranks first
        assert data["results"][0]["type"] == "pitch"
        assert data["results"][0]["url"].endswith(data["results"][0]["id"])

    async def test_type_filter(self, client: AsyncClient, make_user, auth_headers):
        await make_user(name="Growth Guru")
        await client.post("/api/posts", json={"content": "Growth hacks that worked"}, headers=auth_headers)

        repeated = (await client.get("/api/search", params=[("q", "growth"), ("types", "post")])).json()
        comma = (await client.get("/api/search", params={"q": "growth", "types": "user,post"})).json()

        assert [r["type"] for r in repeated["results"]] == ["post"]
        assert set(comma["counts"]) == {"user", "post"}

    async def test_unknown_type(self, client: AsyncClient):
        response = await client.get("/api/search", params={"q": "growth", "types": "planet"})

        assert response.status_code == 400
        assert response.json()["error"]["details"]["field"] == "types"

    async def test_wildcards_are_literal(self, client: AsyncClient, auth_headers):
        await client.post("/api/posts", json={"content": "Closed our round 40% oversubscribed"}, headers=auth_headers)
        await client.post("/api/posts", json={"content": "Closed our round at 400 crore"}, headers=auth_headers)

        everything = (await client.get("/api/search", params={"q": "%%"})).json()
        percent = (await client.get("/api/search", params={"q": "40%", "types": "post"})).json()

        assert everything["total"] == 0
        assert percent["counts"] == {"post": 1}
        assert "40%" in percent["results"][0]["title"]

    async def test_inactive_members_hidden(self, client: AsyncClient, make_user):
        await make_user(name="Hidden Harish", is_active=False)

        response = await client.get("/api/search", params={"q": "harish"})

        assert response.json()["total"] == 0

    async def test_limit_per_type(self, client: AsyncClient, make_user):
        for i in range(4):
            await make_user(name=f"Karan {i}")

        response = await client.get("/api/search", params={"q": "karan", "types": "user", "limit": 2})

        assert response.json()["counts"] == {"user": 2}


class TestSuggestions:

    async def test_suggestions(self, client: AsyncClient, make_user, auth_headers):
        await make_user(name="Startup Sam")
        await client.post("/api/pitches", json={"name": "StartupKit", "description": "Tools"}, headers=auth_headers)

        response = await client.get("/api/search/suggestions", params={"q": "startup"})

        data = response.json()
        assert data["query"] == "startup"
        assert set(data["suggestions"]) == {"Startup Sam", "StartupKit"}

    async def test_short_prefix(self, client: AsyncClient):
        response = await client.get("/api/search/suggestions", params={"q": "s"})

        assert response.json()["suggestions"] == []
