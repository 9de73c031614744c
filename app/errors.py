"""Exception hierarchy for the URL shortener core.

Claim conflicts never appear here: they are recovered inside the allocator.
A missing code is not an error either; lookups return ``None`` for it, so
callers can tell "no such code" apart from :class:`StoreUnavailableError`.
"""

__all__ = [
    "ShortenerError",
    "ConfigurationError",
    "CodeSpaceExhaustedError",
    "InvalidCodeError",
    "StoreUnavailableError",
]


class ShortenerError(Exception):
    """Base exception for all shortener errors."""


class ConfigurationError(ShortenerError):
    """The service is configured in a way that can never work."""


class CodeSpaceExhaustedError(ConfigurationError):
    """No free code was claimed within the configured number of attempts."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Failed to claim a unique short code after {attempts} attempts")


class InvalidCodeError(ShortenerError, ValueError):
    """A short code does not satisfy the length/alphabet invariant."""


class StoreUnavailableError(ShortenerError):
    """The mapping store could not complete an operation."""
