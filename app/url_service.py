"""URL Shortener Service Layer - Core Business Logic

This module wires the allocation core (code generator, allocator, mapping
store) and the redirect resolver into one request-scoped service, adding
metrics and logging around each operation.

Architecture Overview
=====================
::
    ┌──────────────────────────────────────────────────────────┐
    │                   URLShorteningService                   │
    │  ┌────────────────┐  ┌────────────────┐  ┌─────────────┐ │
    │  │ CodeAllocator  │  │RedirectResolver│  │  Metrics &  │ │
    │  │ • generate     │  │ • lookup       │  │  Logging    │ │
    │  │ • try_claim    │  │ • long URL /   │  │             │ │
    │  │ • retry        │  │   not found    │  │             │ │
    │  └───────┬────────┘  └───────┬────────┘  └─────────────┘ │
    └──────────┼───────────────────┼──────────────────────────┘
               ▼                   ▼
    ┌──────────────────────────────────────┐
    │ MappingStore                         │
    │ CachedMappingStore (Redis, optional) │
    │   └─ SQLAlchemyMappingStore          │
    └──────────────────────────────────────┘
               │
               ▼
    ┌─────────────────┐
    │   PostgreSQL    │
    │ (unique code)   │
    └─────────────────┘

Usage Examples
==============
```python
@router.post("/api/shorten")
async def shorten_url(
    payload: URLCreate,
    service: URLShorteningService = Depends(get_url_service),
) -> URLResponse:
    mapping = await service.shorten(payload.url, "https://short.ly")
    return URLResponse.model_validate(mapping.model_dump())
```
"""

import time
from typing import TYPE_CHECKING, Optional

from prometheus_client import Counter, Histogram

from app.allocator import CodeAllocator
from app.codegen import CodeGenerator, validate_code
from app.enums import RequestStatus, ResolveResult
from app.errors import CodeSpaceExhaustedError, InvalidCodeError
from app.mapping import Mapping
from app.resolver import RedirectResolver
from app.store import CachedMappingStore, MappingStore, SQLAlchemyMappingStore

if TYPE_CHECKING:
    from app.dependencies import RequestContext

__all__ = ["URLShorteningService", "build_store"]


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

URL_CREATION_REQUESTS_TOTAL = Counter(
    "url_shortener_creation_requests_total",
    "Total URL creation requests",
    ["status"],
)
URL_RESOLVE_REQUESTS_TOTAL = Counter(
    "url_shortener_resolve_requests_total",
    "Total short code resolve requests",
    ["result"],
)
URL_CREATION_DURATION = Histogram(
    "url_shortener_creation_duration_seconds",
    "Time taken to allocate and persist short URLs",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)
URL_RESOLVE_DURATION = Histogram(
    "url_shortener_resolve_duration_seconds",
    "Time taken to resolve short codes",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25],
)


def build_store(ctx: "RequestContext") -> MappingStore:
    store: MappingStore = SQLAlchemyMappingStore(ctx.database)
    if ctx.cache is not None:
        store = CachedMappingStore(store, ctx.cache, ttl_seconds=ctx.settings.CACHE_TTL_SECONDS)
    return store


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================


class URLShorteningService:
    """Request-scoped facade over allocation and resolution.

    Example:
        >>> service = URLShorteningService.from_context(ctx)
        >>> mapping = await service.shorten("https://example.com/a", "https://short.ly")
        >>> await service.resolve(mapping.code)
        'https://example.com/a'
    """

    def __init__(
        self,
        ctx: "RequestContext",
        store: Optional[MappingStore] = None,
        generator: Optional[CodeGenerator] = None,
    ):
        self._logger = ctx.logger
        self._settings = ctx.settings
        self._store = store if store is not None else build_store(ctx)
        self._allocator = CodeAllocator(
            self._store,
            generator,
            max_attempts=self._settings.MAX_ALLOCATION_ATTEMPTS,
            logger=self._logger,
        )
        self._resolver = RedirectResolver(self._store, logger=self._logger)

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "URLShorteningService":
        return cls(ctx)

    async def shorten(self, long_url: str, base_origin: str) -> Mapping:
        """Allocate a unique code for ``long_url``.

        Raises:
            CodeSpaceExhaustedError: No free code within MAX_ALLOCATION_ATTEMPTS.
            StoreUnavailableError: The database failed.
        """
        start_time = time.perf_counter()
        try:
            self._logger.info(f"Creating short URL for: {long_url}")
            mapping = await self._allocator.allocate(long_url, base_origin)
        except CodeSpaceExhaustedError:
            URL_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.EXHAUSTED).inc()
            raise
        except Exception as exc:
            URL_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            self._logger.error(f"URL creation error: {exc}")
            raise
        finally:
            URL_CREATION_DURATION.observe(time.perf_counter() - start_time)

        URL_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"URL created successfully: {mapping.code}")
        return mapping

    async def resolve(self, code: str) -> Optional[str]:
        start_time = time.perf_counter()
        try:
            long_url = await self._resolver.resolve(code)
        except Exception as exc:
            URL_RESOLVE_REQUESTS_TOTAL.labels(result=ResolveResult.ERROR).inc()
            self._logger.error(f"Resolve error for {code}: {exc}")
            raise
        finally:
            URL_RESOLVE_DURATION.observe(time.perf_counter() - start_time)

        result = ResolveResult.HIT if long_url is not None else ResolveResult.MISS
        URL_RESOLVE_REQUESTS_TOTAL.labels(result=result).inc()
        return long_url

    async def get_mapping(self, code: str) -> Optional[Mapping]:
        """Full mapping record for auditing; ``None`` when unknown."""
        try:
            validate_code(code)
        except InvalidCodeError:
            return None
        return await self._store.lookup(code)
