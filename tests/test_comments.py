"""
Comment endpoint tests: comments are created under a blog and managed by
their author only.
"""
import pytest
from httpx import AsyncClient

from conftest import register_and_login


async def _blog_with_comment(client: AsyncClient, headers: dict) -> tuple[dict, dict]:
    blog = (await client.post("/api/v1/blogs", json={"title": "T", "content": "C"}, headers=headers)).json()
    resp = await client.post(f"/api/v1/blogs/{blog['id']}/comments", json={"content": "First!"}, headers=headers)
    assert resp.status_code == 201, resp.text
    return blog, resp.json()


@pytest.mark.asyncio
async def test_create_and_list_comments(async_client: AsyncClient, auth):
    user_id, headers = auth
    blog, comment = await _blog_with_comment(async_client, headers)
    assert comment["blog_id"] == blog["id"]
    assert comment["user_id"] == user_id

    await async_client.post(f"/api/v1/blogs/{blog['id']}/comments", json={"content": "Second"}, headers=headers)
    resp = await async_client.get(f"/api/v1/blogs/{blog['id']}/comments", headers=headers)
    assert resp.status_code == 200
    assert [c["content"] for c in resp.json()] == ["First!", "Second"]


@pytest.mark.asyncio
async def test_comment_on_unknown_blog_returns_404(async_client: AsyncClient, auth):
    _, headers = auth
    post = await async_client.post("/api/v1/blogs/missing/comments", json={"content": "x"}, headers=headers)
    get = await async_client.get("/api/v1/blogs/missing/comments", headers=headers)
    assert post.status_code == 404
    assert get.status_code == 404


@pytest.mark.asyncio
async def test_empty_comment_is_rejected(async_client: AsyncClient, auth):
    _, headers = auth
    blog, _ = await _blog_with_comment(async_client, headers)
    resp = await async_client.post(f"/api/v1/blogs/{blog['id']}/comments", json={"content": ""}, headers=headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_comment(async_client: AsyncClient, auth):
    _, headers = auth
    _, comment = await _blog_with_comment(async_client, headers)
    resp = await async_client.get(f"/api/v1/comments/{comment['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["content"] == "First!"
    assert (await async_client.get(f"/api/v1/comments/{comment['id']}")).status_code == 401


@pytest.mark.asyncio
async def test_author_can_update_and_delete(async_client: AsyncClient, auth):
    _, headers = auth
    _, comment = await _blog_with_comment(async_client, headers)

    resp = await async_client.put(f"/api/v1/comments/{comment['id']}", json={"content": "Edited"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["content"] == "Edited"

    assert (await async_client.delete(f"/api/v1/comments/{comment['id']}", headers=headers)).status_code == 204
    assert (await async_client.get(f"/api/v1/comments/{comment['id']}", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_other_users_cannot_edit_comment(async_client: AsyncClient, auth):
    _, headers = auth
    _, comment = await _blog_with_comment(async_client, headers)
    _, intruder = await register_and_login(async_client, "mallory", "mallory@example.com")

    put = await async_client.put(f"/api/v1/comments/{comment['id']}", json={"content": "pwned"}, headers=intruder)
    delete = await async_client.delete(f"/api/v1/comments/{comment['id']}", headers=intruder)
    assert put.status_code == 403
    assert delete.status_code == 403


@pytest.mark.asyncio
async def test_deleting_blog_removes_its_comments(async_client: AsyncClient, auth):
    _, headers = auth
    blog, comment = await _blog_with_comment(async_client, headers)
    await async_client.delete(f"/api/v1/blogs/{blog['id']}", headers=headers)
    assert (await async_client.get(f"/api/v1/comments/{comment['id']}", headers=headers)).status_code == 404
