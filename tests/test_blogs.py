"""
Blog endpoint tests: CRUD, ownership, pagination and cache invalidation.
"""
import pytest
from httpx import AsyncClient

from conftest import FakeRedis, register_and_login
from myblog.cache import cache


async def _create_blog(client: AsyncClient, headers: dict, title: str = "Hello", content: str = "World") -> dict:
    resp = await client.post("/api/v1/blogs", json={"title": title, "content": content}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_blog_owned_by_caller(async_client: AsyncClient, auth):
    user_id, headers = auth
    blog = await _create_blog(async_client, headers)
    assert blog["user_id"] == user_id
    assert blog["title"] == "Hello"
    assert blog["content"] == "World"
    assert blog["created_at"] and blog["updated_at"]


@pytest.mark.asyncio
async def test_blogs_require_authentication(async_client: AsyncClient):
    assert (await async_client.get("/api/v1/blogs")).status_code == 401
    assert (await async_client.post("/api/v1/blogs", json={"title": "t", "content": "c"})).status_code == 401


@pytest.mark.asyncio
async def test_create_blog_rejects_empty_title(async_client: AsyncClient, auth):
    _, headers = auth
    resp = await async_client.post("/api/v1/blogs", json={"title": "", "content": "c"}, headers=headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_blog(async_client: AsyncClient, auth):
    _, headers = auth
    blog = await _create_blog(async_client, headers)
    resp = await async_client.get(f"/api/v1/blogs/{blog['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["id"] == blog["id"]


@pytest.mark.asyncio
async def test_get_unknown_blog_returns_404(async_client: AsyncClient, auth):
    _, headers = auth
    resp = await async_client.get("/api/v1/blogs/does-not-exist", headers=headers)
    assert resp.status_code == 404
    assert "does-not-exist" in resp.json()["detail"]


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_pages_are_zero_based_and_newest_first(async_client: AsyncClient, auth):
    _, headers = auth
    for i in range(5):
        await _create_blog(async_client, headers, title=f"blog {i}")

    first = (await async_client.get("/api/v1/blogs", params={"page": 0, "per_page": 2}, headers=headers)).json()
    third = (await async_client.get("/api/v1/blogs", params={"page": 2, "per_page": 2}, headers=headers)).json()
    beyond = (await async_client.get("/api/v1/blogs", params={"page": 9, "per_page": 2}, headers=headers)).json()

    assert [b["title"] for b in first] == ["blog 4", "blog 3"]
    assert [b["title"] for b in third] == ["blog 0"]
    assert beyond == []


@pytest.mark.asyncio
async def test_pagination_bounds_are_validated(async_client: AsyncClient, auth):
    _, headers = auth
    assert (await async_client.get("/api/v1/blogs", params={"page": -1}, headers=headers)).status_code == 422
    assert (await async_client.get("/api/v1/blogs", params={"per_page": 0}, headers=headers)).status_code == 422
    assert (await async_client.get("/api/v1/blogs", params={"per_page": 101}, headers=headers)).status_code == 422


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_owner_can_update_with_partial_fields(async_client: AsyncClient, auth):
    _, headers = auth
    blog = await _create_blog(async_client, headers)
    resp = await async_client.put(f"/api/v1/blogs/{blog['id']}", json={"title": "Renamed"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["title"] == "Renamed"
    assert resp.json()["content"] == "World"


@pytest.mark.asyncio
async def test_non_owner_cannot_update_or_delete(async_client: AsyncClient, auth):
    _, headers = auth
    blog = await _create_blog(async_client, headers)
    _, intruder = await register_and_login(async_client, "mallory", "mallory@example.com")

    put = await async_client.put(f"/api/v1/blogs/{blog['id']}", json={"title": "Mine now"}, headers=intruder)
    delete = await async_client.delete(f"/api/v1/blogs/{blog['id']}", headers=intruder)
    assert put.status_code == 403
    assert delete.status_code == 403

    unchanged = (await async_client.get(f"/api/v1/blogs/{blog['id']}", headers=headers)).json()
    assert unchanged["title"] == "Hello"


@pytest.mark.asyncio
async def test_update_unknown_blog_returns_404(async_client: AsyncClient, auth):
    _, headers = auth
    resp = await async_client.put("/api/v1/blogs/missing", json={"title": "x"}, headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_blog_then_404(async_client: AsyncClient, auth):
    _, headers = auth
    blog = await _create_blog(async_client, headers)
    assert (await async_client.delete(f"/api/v1/blogs/{blog['id']}", headers=headers)).status_code == 204
    assert (await async_client.get(f"/api/v1/blogs/{blog['id']}", headers=headers)).status_code == 404
    assert (await async_client.delete(f"/api/v1/blogs/{blog['id']}", headers=headers)).status_code == 404


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_evicts_cached_detail_and_lists(async_client: AsyncClient, auth, fake_redis: FakeRedis):
    cache._redis = fake_redis
    _, headers = auth
    blog = await _create_blog(async_client, headers)

    await async_client.get(f"/api/v1/blogs/{blog['id']}", headers=headers)
    await async_client.get("/api/v1/blogs", headers=headers)
    assert f"blogs:detail:{blog['id']}" in fake_redis.data
    assert any(k.startswith("blogs:list:") for k in fake_redis.data)

    await async_client.put(f"/api/v1/blogs/{blog['id']}", json={"title": "Fresh"}, headers=headers)
    assert f"blogs:detail:{blog['id']}" not in fake_redis.data
    assert not any(k.startswith("blogs:list:") for k in fake_redis.data)

    resp = await async_client.get(f"/api/v1/blogs/{blog['id']}", headers=headers)
    assert resp.json()["title"] == "Fresh"


@pytest.mark.asyncio
async def test_cached_detail_is_served_from_cache(async_client: AsyncClient, auth, fake_redis: FakeRedis):
    cache._redis = fake_redis
    _, headers = auth
    blog = await _create_blog(async_client, headers)

    await async_client.get(f"/api/v1/blogs/{blog['id']}", headers=headers)
    hits_before = cache.stats["hits"]
    resp = await async_client.get(f"/api/v1/blogs/{blog['id']}", headers=headers)

    assert resp.status_code == 200
    assert cache.stats["hits"] == hits_before + 1
    assert resp.headers["x-query-count"] == "0"
