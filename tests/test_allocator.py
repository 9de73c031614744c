"""Allocation loop tests: round trip, collisions, exhaustion and concurrency."""

import asyncio
from collections.abc import Iterator
from unittest.mock import AsyncMock

import pytest

from app.allocator import CodeAllocator
from app.codegen import ALPHABET, CODE_LENGTH, CodeGenerator
from app.errors import CodeSpaceExhaustedError, ConfigurationError, StoreUnavailableError
from app.resolver import RedirectResolver
from app.store import InMemoryMappingStore, MappingStore

BASE_ORIGIN = "https://short.ly"


def scripted_generator(codes: list[str]) -> CodeGenerator:
    """Generator that replays ``codes`` and then falls back to random codes."""
    scripted: Iterator[str] = iter(codes)
    fallback = CodeGenerator()

    def _source(alphabet: str, size: int) -> str:
        return next(scripted, None) or fallback.generate()

    return CodeGenerator(source=_source)


@pytest.mark.asyncio
async def test_allocate_example_scenario(memory_store: InMemoryMappingStore) -> None:
    allocator = CodeAllocator(memory_store)
    resolver = RedirectResolver(memory_store)

    mapping = await allocator.allocate("https://example.com/very/long/path", BASE_ORIGIN)

    assert len(mapping.code) == CODE_LENGTH
    assert all(c in ALPHABET for c in mapping.code)
    assert mapping.short_url == f"{BASE_ORIGIN}/{mapping.code}"
    assert await resolver.resolve(mapping.code) == "https://example.com/very/long/path"


@pytest.mark.asyncio
async def test_allocate_round_trip(memory_store: InMemoryMappingStore) -> None:
    allocator = CodeAllocator(memory_store)
    resolver = RedirectResolver(memory_store)
    urls = [
        "https://www.google.com",
        "https://www.python.org/downloads/",
        "http://localhost:8080/a?b=c",
    ]
    for url in urls:
        mapping = await allocator.allocate(url, BASE_ORIGIN)
        assert await resolver.resolve(mapping.code) == url


@pytest.mark.asyncio
async def test_allocate_retries_on_collision(memory_store: InMemoryMappingStore) -> None:
    existing, claimed = await memory_store.try_claim("taken00", "https://first.com", f"{BASE_ORIGIN}/taken00")
    assert claimed

    allocator = CodeAllocator(memory_store, scripted_generator(["taken00", "taken00"]))
    mapping = await allocator.allocate("https://second.com", BASE_ORIGIN)

    assert mapping.code != "taken00"
    assert len(memory_store) == 2
    # The original claim is untouched
    assert (await memory_store.lookup("taken00")).long_url == "https://first.com"
    assert (await memory_store.lookup(mapping.code)).long_url == "https://second.com"


@pytest.mark.asyncio
async def test_allocate_exhaustion_is_fatal(memory_store: InMemoryMappingStore) -> None:
    await memory_store.try_claim("taken00", "https://first.com", f"{BASE_ORIGIN}/taken00")
    allocator = CodeAllocator(
        memory_store,
        CodeGenerator(source=lambda alphabet, size: "taken00"),
        max_attempts=3,
    )

    with pytest.raises(CodeSpaceExhaustedError) as excinfo:
        await allocator.allocate("https://second.com", BASE_ORIGIN)

    assert excinfo.value.attempts == 3
    assert isinstance(excinfo.value, ConfigurationError)
    assert len(memory_store) == 1


@pytest.mark.asyncio
async def test_allocate_does_not_retry_store_failures() -> None:
    store = AsyncMock(spec=MappingStore)
    store.try_claim.side_effect = StoreUnavailableError("connection refused")
    allocator = CodeAllocator(store)

    with pytest.raises(StoreUnavailableError):
        await allocator.allocate("https://example.com", BASE_ORIGIN)

    store.try_claim.assert_awaited_once()


@pytest.mark.asyncio
async def test_allocate_relies_on_claim_not_precheck() -> None:
    store = AsyncMock(spec=MappingStore)
    store.try_claim.return_value = (None, False)
    allocator = CodeAllocator(store, max_attempts=2)

    with pytest.raises(CodeSpaceExhaustedError):
        await allocator.allocate("https://example.com", BASE_ORIGIN)

    assert store.try_claim.await_count == 2
    store.lookup.assert_not_called()


def test_non_positive_max_attempts_rejected(memory_store: InMemoryMappingStore) -> None:
    with pytest.raises(ConfigurationError):
        CodeAllocator(memory_store, max_attempts=0)


@pytest.mark.asyncio
async def test_concurrent_allocations_yield_distinct_codes(memory_store: InMemoryMappingStore) -> None:
    allocator = CodeAllocator(memory_store)
    resolver = RedirectResolver(memory_store)
    urls = [f"https://example.com/page/{i}" for i in range(100)]

    mappings = await asyncio.gather(*(allocator.allocate(url, BASE_ORIGIN) for url in urls))

    assert len({m.code for m in mappings}) == len(urls)
    assert len(memory_store) == len(urls)
    for url, mapping in zip(urls, mappings):
        assert await resolver.resolve(mapping.code) == url


@pytest.mark.asyncio
async def test_concurrent_allocations_racing_on_same_candidate(memory_store: InMemoryMappingStore) -> None:
    # Every allocator proposes the same first candidate; exactly one may win it
    allocators = [CodeAllocator(memory_store, scripted_generator(["race000"])) for _ in range(20)]
    urls = [f"https://example.com/race/{i}" for i in range(20)]

    mappings = await asyncio.gather(*(a.allocate(u, BASE_ORIGIN) for a, u in zip(allocators, urls)))

    assert sum(1 for m in mappings if m.code == "race000") == 1
    assert len({m.code for m in mappings}) == 20
    assert len(memory_store) == 20
