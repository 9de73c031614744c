"""The long-URL ↔ short-code mapping value type.

A ``Mapping`` is created exactly once, when its code is claimed, and is never
mutated afterwards. The model is frozen; every construction path (the
``create`` factory or rehydration from a stored record) validates ``code``.

Class Layout
============
::
    Mapping
    ├─ id: UUID          (opaque, storage identity only)
    ├─ code: str         (7 chars from ALPHABET, unique forever)
    ├─ long_url: str     (verbatim caller input)
    ├─ short_url: str    (<base origin>/<code>)
    └─ created_at: datetime (UTC, time of successful claim)
"""

import datetime
import uuid

from pydantic import BaseModel, ConfigDict, field_validator

from app.codegen import validate_code

__all__ = ["Mapping", "compose_short_url"]


def compose_short_url(base_origin: str, code: str) -> str:
    return f"{base_origin.rstrip('/')}/{code}"


class Mapping(BaseModel):
    id: uuid.UUID
    code: str
    long_url: str
    short_url: str
    created_at: datetime.datetime

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        return validate_code(v)

    @classmethod
    def create(cls, code: str, long_url: str, short_url: str) -> "Mapping":
        """Build a brand-new mapping, assigning ``id`` and ``created_at`` now."""
        return cls(
            id=uuid.uuid4(),
            code=code,
            long_url=long_url,
            short_url=short_url,
            created_at=datetime.datetime.now(datetime.timezone.utc),
        )
