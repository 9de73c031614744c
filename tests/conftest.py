"""Shared pytest fixtures for API, store and service tests."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("APP_ENV", "test")
os.environ.pop("REDIS_URL", None)
os.environ.pop("BASE_URL", None)

from collections.abc import AsyncGenerator, Callable  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import Depends  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.codegen import CodeGenerator  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.dependencies import RequestContext, get_request_context, get_url_service  # noqa: E402
from app.main import app  # noqa: E402
from app.models import ShortenedURL  # noqa: E402,F401
from app.store import InMemoryMappingStore, MappingStore  # noqa: E402
from app.url_service import URLShorteningService  # noqa: E402


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    # One shared in-memory database per test
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def memory_store() -> InMemoryMappingStore:
    return InMemoryMappingStore()


@pytest.fixture
def use_url_service() -> Callable[..., None]:
    """Route API requests through a service built on the given store.

    The ``client`` fixture clears the override on teardown.
    """

    def _install(store: MappingStore, generator: Optional[CodeGenerator] = None) -> None:
        def override_get_url_service(ctx: RequestContext = Depends(get_request_context)) -> URLShorteningService:
            return URLShorteningService(ctx, store=store, generator=generator)

        app.dependency_overrides[get_url_service] = override_get_url_service

    return _install
