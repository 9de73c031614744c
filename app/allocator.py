"""Short-code allocation: generate candidates until one is claimed.

Flow Diagram — allocate()
=========================
::
    ┌─────────────┐
    │ generate()  │◄──────────────┐
    └──────┬──────┘               │
           ▼                      │
    ┌─────────────┐               │
    │ try_claim() │               │
    └──────┬──────┘               │
    CLAIMED?                      │
    ┌─────┴─────┐                 │
    │ YES        │ NO (conflict)  │
    ▼            └────────────────┘
┌─────────┐     attempts exhausted
│ Mapping │     → CodeSpaceExhaustedError
└─────────┘

Key Behaviours
===============
- Uniqueness is decided by the store's atomic claim; there is no pre-check.
- A conflict is retried at once with a fresh candidate.
- Store failures propagate to the caller and are not retried here.
"""

import logging

from prometheus_client import Counter

from app.codegen import CodeGenerator
from app.errors import CodeSpaceExhaustedError, ConfigurationError
from app.mapping import Mapping, compose_short_url
from app.store import MappingStore

__all__ = ["CodeAllocator", "DEFAULT_MAX_ATTEMPTS"]

DEFAULT_MAX_ATTEMPTS = 10

CLAIM_ATTEMPTS_TOTAL = Counter(
    "url_shortener_claim_attempts_total",
    "Total short-code claim attempts",
)
CLAIM_CONFLICTS_TOTAL = Counter(
    "url_shortener_claim_conflicts_total",
    "Claim attempts lost because the code already existed",
)


class CodeAllocator:
    def __init__(
        self,
        store: MappingStore,
        generator: CodeGenerator | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        if max_attempts <= 0:
            raise ConfigurationError(f"max_attempts must be positive, got {max_attempts!r}")
        self._store = store
        self._generator = generator or CodeGenerator()
        self._max_attempts = max_attempts
        self._logger = logger or logging.getLogger("urlshortener.allocator")

    async def allocate(self, long_url: str, base_origin: str) -> Mapping:
        """Claim a fresh code for ``long_url`` and return the persisted mapping.

        Args:
            long_url: Absolute URL, already validated by the caller.
            base_origin: ``scheme://host`` used to compose the short URL.

        Raises:
            CodeSpaceExhaustedError: Every attempt hit an existing code.
            StoreUnavailableError: The store failed.
        """
        for attempt in range(1, self._max_attempts + 1):
            code = self._generator.generate()
            CLAIM_ATTEMPTS_TOTAL.inc()
            mapping, claimed = await self._store.try_claim(code, long_url, compose_short_url(base_origin, code))
            if claimed:
                if attempt > 1:
                    self._logger.info(f"Claimed code {code} after {attempt} attempts")
                return mapping

            CLAIM_CONFLICTS_TOTAL.inc()
            self._logger.warning(f"Code collision on {code} (attempt {attempt}/{self._max_attempts}), retrying")

        self._logger.error(f"Giving up after {self._max_attempts} colliding attempts")
        raise CodeSpaceExhaustedError(self._max_attempts)
