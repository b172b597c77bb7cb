"""
Cross-cutting HTTP behaviour: the rankings endpoint, timing headers, the
request deadline and error mapping.
"""
import asyncio

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from myblog.database import DBHandle
from myblog.errors import AppError, InfrastructureError, TransactionCommitError
from myblog.main import app_error_handler
from myblog.middleware import TimingMiddleware
from myblog.services import ranking_service


# ---------------------------------------------------------------------------
# Rankings endpoint
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_rankings_are_public_and_limited(async_client: AsyncClient, auth, db: DBHandle):
    _, headers = auth
    for title, n in (("quiet", 1), ("busy", 3)):
        blog = (await async_client.post("/api/v1/blogs", json={"title": title, "content": "c"}, headers=headers)).json()
        for _ in range(n):
            await async_client.post(f"/api/v1/blogs/{blog['id']}/comments", json={"content": "hi"}, headers=headers)
    await ranking_service.calculate_popular_ranking(db, 7)

    resp = await async_client.get("/api/v1/rankings")
    assert resp.status_code == 200
    body = resp.json()
    assert [(r["ranking_position"], r["score"]) for r in body] == [(1, 3), (2, 1)]

    top = await async_client.get("/api/v1/rankings", params={"limit": 1})
    assert len(top.json()) == 1


@pytest.mark.asyncio
async def test_rankings_empty_before_first_batch(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/rankings")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_rankings_limit_is_validated(async_client: AsyncClient):
    assert (await async_client.get("/api/v1/rankings", params={"limit": 0})).status_code == 422
    assert (await async_client.get("/api/v1/rankings", params={"limit": 101})).status_code == 422


# ---------------------------------------------------------------------------
# Timing headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_every_response_has_timing_headers(async_client: AsyncClient, auth):
    _, headers = auth
    resp = await async_client.get("/api/v1/blogs", headers=headers)
    assert "x-response-time-ms" in resp.headers
    assert float(resp.headers["x-response-time-ms"]) >= 0
    assert int(resp.headers["x-query-count"]) >= 0

    missing = await async_client.get("/api/v1/blogs/nope", headers=headers)
    assert missing.status_code == 404
    assert "x-query-count" in missing.headers


# ---------------------------------------------------------------------------
# Request deadline
# ---------------------------------------------------------------------------

def _slow_app(delay: float) -> FastAPI:
    slow = FastAPI()

    @slow.get("/slow")
    async def slow_endpoint():
        await asyncio.sleep(delay)
        return {"ok": True}

    slow.add_middleware(TimingMiddleware, timeout=0.05)
    return slow


@pytest.mark.asyncio
async def test_request_past_deadline_gets_504():
    transport = ASGITransport(app=_slow_app(1.0))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/slow")
    assert resp.status_code == 504
    assert resp.json() == {"detail": "Request timed out"}
    assert "x-response-time-ms" in resp.headers


@pytest.mark.asyncio
async def test_request_within_deadline_succeeds():
    transport = ASGITransport(app=_slow_app(0.0))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/slow")
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

def _failing_app(exc: AppError) -> FastAPI:
    failing = FastAPI()
    failing.add_exception_handler(AppError, app_error_handler)

    @failing.get("/boom")
    async def boom():
        raise exc

    return failing


@pytest.mark.asyncio
@pytest.mark.parametrize("exc", [
    InfrastructureError("storage failure", operation="blog_repository.find_by_id", entity_id="b1"),
    TransactionCommitError("failed to commit transaction", operation="commit"),
])
async def test_server_side_errors_are_opaque_500s(exc):
    transport = ASGITransport(app=_failing_app(exc))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/boom")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal server error"}
