"""Random short-code generation.

Codes are fixed-length strings drawn uniformly from a 62-symbol alphabet.
The random source is injected so that tests can substitute a seeded or
collision-forcing source; by default it is :func:`nanoid.generate`, which
reads from the OS CSPRNG and masks indexes so every symbol is equally likely.

How to Use
===========
**Default generator**::
    generator = CodeGenerator()
    code = generator.generate()  # e.g. "Xa9bK2q"

**Deterministic generator for tests**::
    generator = CodeGenerator(source=random_choice_source(random.Random(42)))

Functions:
    random_choice_source():  Adapt a ``random.Random``-like object into a source.
    validate_code():  Check the length/alphabet invariant of a code.
"""

import random
import string
from collections.abc import Callable

from nanoid import generate

from app.errors import ConfigurationError, InvalidCodeError

__all__ = [
    "ALPHABET",
    "CODE_LENGTH",
    "CodeGenerator",
    "CodeSource",
    "random_choice_source",
    "validate_code",
]

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
CODE_LENGTH = 7

_ALPHABET_SET = frozenset(ALPHABET)

# (alphabet, size) -> code
CodeSource = Callable[[str, int], str]


def random_choice_source(rng: random.Random) -> CodeSource:
    """Build a code source from ``rng.choice``.

    ``choice`` picks from the whole sequence, last symbol included. Pass a
    ``secrets.SystemRandom()`` for production-grade entropy or a seeded
    ``random.Random`` for reproducible tests.
    """

    def _source(alphabet: str, size: int) -> str:
        return "".join(rng.choice(alphabet) for _ in range(size))

    return _source


def validate_code(code: str) -> str:
    if not isinstance(code, str) or len(code) != CODE_LENGTH:
        raise InvalidCodeError(f"Short code must be exactly {CODE_LENGTH} characters, got {code!r}")
    if not _ALPHABET_SET.issuperset(code):
        raise InvalidCodeError(f"Short code contains characters outside the alphabet: {code!r}")
    return code


class CodeGenerator:
    """Produces candidate short codes; knows nothing about persistence."""

    def __init__(
        self,
        alphabet: str = ALPHABET,
        length: int = CODE_LENGTH,
        source: CodeSource | None = None,
    ) -> None:
        if not alphabet:
            raise ConfigurationError("Code alphabet must not be empty")
        if length <= 0:
            raise ConfigurationError(f"Code length must be positive, got {length!r}")
        if length != CODE_LENGTH:
            raise ConfigurationError(f"Stored codes are {CODE_LENGTH} characters, got length {length!r}")
        if not _ALPHABET_SET.issuperset(alphabet):
            raise ConfigurationError(f"Code alphabet must only use symbols from {ALPHABET!r}, got {alphabet!r}")
        self._alphabet = alphabet
        self._length = length
        self._source = source or generate

    @property
    def alphabet(self) -> str:
        return self._alphabet

    @property
    def length(self) -> int:
        return self._length

    def generate(self) -> str:
        return self._source(self._alphabet, self._length)
