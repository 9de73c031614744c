"""Redirect and lookup endpoint behavior tests."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from app.errors import StoreUnavailableError
from app.store import MappingStore


@pytest.mark.asyncio
async def test_redirect_valid_code(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"url": "https://example.com/very/long/path"})
    code = create_resp.json()["code"]

    # httpx won't follow redirects by default
    response = await client.get(f"/{code}", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "https://example.com/very/long/path"


@pytest.mark.asyncio
async def test_redirect_is_repeatable(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"url": "https://www.python.org"})
    code = create_resp.json()["code"]

    for _ in range(3):
        response = await client.get(f"/{code}", follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == "https://www.python.org"


@pytest.mark.asyncio
async def test_redirect_unissued_code(client: AsyncClient) -> None:
    response = await client.get("/ZZZZZZZ", follow_redirects=False)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_redirect_malformed_code(client: AsyncClient) -> None:
    response = await client.get("/nonexistent", follow_redirects=False)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_url_details(client: AsyncClient) -> None:
    created = (await client.post("/api/shorten", json={"url": "https://www.google.com"})).json()

    response = await client.get(f"/api/urls/{created['code']}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == created["id"]
    assert data["code"] == created["code"]
    assert data["long_url"] == "https://www.google.com"
    assert data["short_url"] == created["short_url"]


@pytest.mark.asyncio
async def test_get_url_details_unknown(client: AsyncClient) -> None:
    response = await client.get("/api/urls/ZZZZZZZ")
    assert response.status_code == 404


@pytest.fixture
def unavailable_store() -> AsyncMock:
    store = AsyncMock(spec=MappingStore)
    store.lookup.side_effect = StoreUnavailableError("connection refused")
    return store


@pytest.mark.asyncio
async def test_redirect_store_unavailable_returns_503(
    client: AsyncClient, use_url_service, unavailable_store: AsyncMock
) -> None:
    use_url_service(unavailable_store)

    response = await client.get("/abc1234", follow_redirects=False)

    assert response.status_code == 503
    unavailable_store.lookup.assert_awaited_once_with("abc1234")


@pytest.mark.asyncio
async def test_get_url_details_store_unavailable_returns_503(
    client: AsyncClient, use_url_service, unavailable_store: AsyncMock
) -> None:
    use_url_service(unavailable_store)

    response = await client.get("/api/urls/abc1234")

    assert response.status_code == 503
