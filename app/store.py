"""Mapping store contract and its implementations.

The store owns every persisted mapping and is the only place where code
uniqueness is decided. ``try_claim`` is a single conditional insert: it either
writes the whole record and reports ``True``, or writes nothing and reports
``False`` because the code is already taken.

Store Implementations
=====================
::
    MappingStore (contract)
    ├─ SQLAlchemyMappingStore   unique index on code, INSERT + IntegrityError
    ├─ InMemoryMappingStore     dict guarded by a lock
    └─ CachedMappingStore       read-through Redis cache over another store

Flow Diagram — try_claim() on SQLAlchemyMappingStore
====================================================
::
    ┌─────────────┐
    │ Mapping.    │
    │ create()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ INSERT +    │
    │ COMMIT      │
    └──────┬──────┘
    UNIQUE VIOLATION?
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌──────────┐
│ (map,   │  │ ROLLBACK │
│  True)  │  │ (None,   │
└─────────┘  │  False)  │
             └──────────┘

Key Behaviours
===============
- A lost claim leaves no trace in the store.
- Database failures other than a code conflict raise StoreUnavailableError.
- Cached entries never go stale because mappings are immutable.
"""

import logging
import threading
from abc import ABC, abstractmethod

import redis.asyncio as redis
from prometheus_client import Counter
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import StoreUnavailableError
from app.mapping import Mapping
from app.models import ShortenedURL

__all__ = [
    "MappingStore",
    "SQLAlchemyMappingStore",
    "InMemoryMappingStore",
    "CachedMappingStore",
]

logger = logging.getLogger("urlshortener.store")

CACHE_HITS_TOTAL = Counter(
    "url_shortener_cache_hits_total",
    "Total cache hits for mapping lookups",
)
CACHE_MISSES_TOTAL = Counter(
    "url_shortener_cache_misses_total",
    "Total cache misses for mapping lookups",
)


class MappingStore(ABC):
    """Durable key space of mappings keyed by code."""

    @abstractmethod
    async def try_claim(self, code: str, long_url: str, short_url: str) -> tuple[Mapping | None, bool]:
        """Insert a new mapping if and only if ``code`` is free.

        Returns:
            ``(mapping, True)`` when the claim committed, ``(None, False)`` when
            the code already exists.

        Raises:
            StoreUnavailableError: The store failed for any other reason.
        """

    @abstractmethod
    async def lookup(self, code: str) -> Mapping | None:
        """Fetch the mapping for ``code``, or ``None`` when it was never claimed."""


class SQLAlchemyMappingStore(MappingStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def try_claim(self, code: str, long_url: str, short_url: str) -> tuple[Mapping | None, bool]:
        mapping = Mapping.create(code=code, long_url=long_url, short_url=short_url)
        self._session.add(ShortenedURL.from_mapping(mapping))
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            # Anything other than an existing row for this code is not a conflict
            if await self.lookup(code) is None:
                raise StoreUnavailableError(f"Insert for code '{code}' failed: {exc}") from exc
            return None, False
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise StoreUnavailableError(f"Insert for code '{code}' failed: {exc}") from exc
        return mapping, True

    async def lookup(self, code: str) -> Mapping | None:
        try:
            result = await self._session.execute(select(ShortenedURL).where(ShortenedURL.code == code))
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Lookup for code '{code}' failed: {exc}") from exc
        record = result.scalar_one_or_none()
        if record is None:
            return None
        return Mapping.model_validate(record)


class InMemoryMappingStore(MappingStore):
    """Process-local store; the lock makes check-and-insert one step."""

    def __init__(self) -> None:
        self._mappings: dict[str, Mapping] = {}
        self._lock = threading.Lock()

    async def try_claim(self, code: str, long_url: str, short_url: str) -> tuple[Mapping | None, bool]:
        mapping = Mapping.create(code=code, long_url=long_url, short_url=short_url)
        with self._lock:
            if code in self._mappings:
                return None, False
            self._mappings[code] = mapping
        return mapping, True

    async def lookup(self, code: str) -> Mapping | None:
        with self._lock:
            return self._mappings.get(code)

    def __len__(self) -> int:
        with self._lock:
            return len(self._mappings)


class CachedMappingStore(MappingStore):
    """Read-through Redis cache in front of another store.

    Redis failures degrade to the wrapped store; they are logged, never raised.
    """

    KEY_PREFIX = "url"

    def __init__(self, store: MappingStore, cache: redis.Redis, ttl_seconds: int = 3600) -> None:
        self._store = store
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    @classmethod
    def cache_key(cls, code: str) -> str:
        return f"{cls.KEY_PREFIX}:{code}"

    async def try_claim(self, code: str, long_url: str, short_url: str) -> tuple[Mapping | None, bool]:
        mapping, claimed = await self._store.try_claim(code, long_url, short_url)
        if claimed:
            await self._write_cache(mapping)
        return mapping, claimed

    async def lookup(self, code: str) -> Mapping | None:
        cached = await self._read_cache(code)
        if cached is not None:
            CACHE_HITS_TOTAL.inc()
            return cached

        CACHE_MISSES_TOTAL.inc()
        mapping = await self._store.lookup(code)
        if mapping is not None:
            await self._write_cache(mapping)
        return mapping

    async def _read_cache(self, code: str) -> Mapping | None:
        try:
            payload = await self._cache.get(self.cache_key(code))
        except redis.RedisError as exc:
            logger.warning(f"Cache read failed for {code}: {exc}")
            return None
        if not payload:
            return None
        try:
            return Mapping.model_validate_json(payload)
        except ValidationError as exc:
            logger.error(f"Cache deserialization error for {code}: {exc}")
            return None

    async def _write_cache(self, mapping: Mapping) -> None:
        try:
            await self._cache.setex(self.cache_key(mapping.code), self._ttl_seconds, mapping.model_dump_json())
        except redis.RedisError as exc:
            logger.warning(f"Cache write failed for {mapping.code}: {exc}")
