"""
Feed API Tests
Tests for: posts, likes, comments, shares, saved posts, network-scoped feed
"""
from httpx import AsyncClient


async def create_post(client: AsyncClient, headers: dict, content: str = "Hello founders!") -> dict:
    response = await client.post("/api/posts", json={"content": content}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestPosts:

    async def test_create_and_read(self, client: AsyncClient, test_user, auth_headers):
        post = await create_post(client, auth_headers, "We just closed our pre-seed round!")

        assert post["author"]["id"] == str(test_user.id)
        assert post["like_count"] == 0

        response = await client.get(f"/api/posts/{post['id']}")
        assert response.status_code == 200
        assert response.json()["content"] == "We just closed our pre-seed round!"

    async def test_blank_post_rejected(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/posts", json={"content": "   "}, headers=auth_headers)

        assert response.status_code == 400

    async def test_post_with_image(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/posts/with-image",
            data={"content": "Our new office"},
            files={"image": ("office.jpg", b"\xff\xd8\xff fake jpeg", "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["media_url"].startswith("/uploads/")

    async def test_feed_is_newest_first(self, client: AsyncClient, auth_headers, other_headers):
        await create_post(client, auth_headers, "first")
        await create_post(client, other_headers, "second")
        await create_post(client, auth_headers, "third")

        response = await client.get("/api/posts")

        assert response.status_code == 200
        assert [p["content"] for p in response.json()["items"]] == ["third", "second", "first"]

    async def test_network_scope(self, client: AsyncClient, make_user, auth_for, test_user, auth_headers):
        friend = await make_user(name="Friend")
        stranger = await make_user(name="Stranger")
        await create_post(client, auth_for(friend), "from a friend")
        await create_post(client, auth_for(stranger), "from a stranger")
        await create_post(client, auth_headers, "my own")

        request = await client.post("/api/connections", json={"receiver_id": str(friend.id)}, headers=auth_headers)
        await client.patch(f"/api/connections/{request.json()['id']}", json={"status": "accepted"},
                           headers=auth_for(friend))

        response = await client.get("/api/posts", params={"scope": "network"}, headers=auth_headers)

        contents = {p["content"] for p in response.json()["items"]}
        assert contents == {"from a friend", "my own"}

    async def test_followed_members_in_network_scope(self, client: AsyncClient, other_user, other_headers,
                                                      auth_headers):
        await create_post(client, other_headers, "investor update")
        await client.post(f"/api/users/{other_user.id}/follow", headers=auth_headers)

        response = await client.get("/api/posts", params={"scope": "network"}, headers=auth_headers)

        assert [p["content"] for p in response.json()["items"]] == ["investor update"]

    async def test_only_author_deletes(self, client: AsyncClient, auth_headers, other_headers, admin_headers):
        post = await create_post(client, auth_headers)

        assert (await client.delete(f"/api/posts/{post['id']}", headers=other_headers)).status_code == 403
        assert (await client.delete(f"/api/posts/{post['id']}", headers=admin_headers)).status_code == 204
        assert (await client.get(f"/api/posts/{post['id']}")).status_code == 404


class TestLikes:

    async def test_like_is_idempotent(self, client: AsyncClient, auth_headers, other_headers):
        post = await create_post(client, auth_headers)

        await client.post(f"/api/posts/{post['id']}/like", headers=other_headers)
        response = await client.post(f"/api/posts/{post['id']}/like", headers=other_headers)

        assert response.json() == {"post_id": post["id"], "liked": True, "like_count": 1}

        detail = await client.get(f"/api/posts/{post['id']}", headers=other_headers)
        assert detail.json()["liked_by_me"] is True

        response = await client.delete(f"/api/posts/{post['id']}/like", headers=other_headers)
        assert response.json()["like_count"] == 0

    async def test_like_notifies_author(self, client: AsyncClient, auth_headers, other_headers):
        post = await create_post(client, auth_headers)

        await client.post(f"/api/posts/{post['id']}/like", headers=other_headers)

        notifications = (await client.get("/api/notifications", headers=auth_headers)).json()
        assert notifications["unread_count"] == 1
        assert notifications["items"][0]["type"] == "like"

    async def test_liking_own_post_does_not_notify(self, client: AsyncClient, auth_headers):
        post = await create_post(client, auth_headers)

        await client.post(f"/api/posts/{post['id']}/like", headers=auth_headers)

        notifications = (await client.get("/api/notifications", headers=auth_headers)).json()
        assert notifications["total"] == 0


class TestComments:

    async def test_comment_flow(self, client: AsyncClient, auth_headers, other_headers):
        post = await create_post(client, auth_headers)

        created = await client.post(f"/api/posts/{post['id']}/comments", json={"content": "Congrats!"},
                                    headers=other_headers)
        assert created.status_code == 201

        comments = (await client.get(f"/api/posts/{post['id']}/comments")).json()
        assert [c["content"] for c in comments] == ["Congrats!"]

        detail = (await client.get(f"/api/posts/{post['id']}")).json()
        assert detail["comment_count"] == 1

    async def test_post_author_can_delete_comment(self, client: AsyncClient, auth_headers, other_headers,
                                                  make_user, auth_for):
        post = await create_post(client, auth_headers)
        comment = (await client.post(f"/api/posts/{post['id']}/comments", json={"content": "spam"},
                                     headers=other_headers)).json()
        outsider = auth_for(await make_user())

        assert (await client.delete(f"/api/comments/{comment['id']}", headers=outsider)).status_code == 403
        assert (await client.delete(f"/api/comments/{comment['id']}", headers=auth_headers)).status_code == 204


class TestShares:

    async def test_share_points_at_original(self, client: AsyncClient, auth_headers, other_headers, make_user,
                                            auth_for):
        original = await create_post(client, auth_headers, "original thought")
        share = (await client.post(f"/api/posts/{original['id']}/share", json={"content": "Worth reading"},
                                   headers=other_headers)).json()
        third = auth_for(await make_user())

        reshare = await client.post(f"/api/posts/{share['id']}/share", headers=third)

        assert reshare.status_code == 201
        assert reshare.json()["shared_post"]["id"] == original["id"]
        detail = (await client.get(f"/api/posts/{original['id']}")).json()
        assert detail["share_count"] == 2


class TestSaved:

    async def test_save_and_list(self, client: AsyncClient, auth_headers, other_headers):
        post = await create_post(client, other_headers, "bookmark me")

        saved = await client.post(f"/api/posts/{post['id']}/save", headers=auth_headers)
        assert saved.json() == {"saved": True}

        listing = (await client.get("/api/posts/saved", headers=auth_headers)).json()
        assert [p["id"] for p in listing["items"]] == [post["id"]]
        assert listing["items"][0]["saved_by_me"] is True

        await client.delete(f"/api/posts/{post['id']}/save", headers=auth_headers)
        listing = (await client.get("/api/posts/saved", headers=auth_headers)).json()
        assert listing["total"] == 0
