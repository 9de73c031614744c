"""Resolve short codes back to their long URLs."""

import logging

from app.codegen import validate_code
from app.errors import InvalidCodeError
from app.store import MappingStore

__all__ = ["RedirectResolver"]


class RedirectResolver:
    def __init__(
        self,
        store: MappingStore,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._store = store
        self._logger = logger or logging.getLogger("urlshortener.resolver")

    async def resolve(self, code: str) -> str | None:
        """Return the long URL for ``code``, or ``None`` if it was never issued.

        Store failures raise ``StoreUnavailableError``; a miss is not an error.
        """
        try:
            validate_code(code)
        except InvalidCodeError:
            # Could never have been issued, so skip the store round trip
            self._logger.debug(f"Rejected malformed code: {code!r}")
            return None

        mapping = await self._store.lookup(code)
        if mapping is None:
            self._logger.debug(f"No mapping for code: {code}")
            return None
        return mapping.long_url
