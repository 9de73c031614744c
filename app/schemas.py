"""Pydantic schemas for request/response validation in the URL shortener.

This module defines Pydantic models for API input validation and output serialization,
ensuring type safety and automatic OpenAPI documentation generation.

Schema Hierarchy
=================
::
    URLCreate (Input)
    └─ url: str (validated absolute URL)

    URLResponse (Output)
    ├─ id: UUID
    ├─ code: str
    ├─ long_url: str
    ├─ short_url: str
    └─ created_at: datetime

    HealthResponse (Output)
    ├─ status: HealthStatus
    ├─ database: HealthStatus
    └─ cache: HealthStatus

Key Behaviours
===============
- URL validation uses the validators library; the core never sees a bad URL.
- URLResponse is built straight from a Mapping (from_attributes).
"""

import datetime
import uuid

import validators
from pydantic import BaseModel, field_validator

from app.enums import HealthStatus

__all__ = ["URLCreate", "URLResponse", "HealthResponse"]


class URLCreate(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not validators.url(v):
            raise ValueError("Invalid URL provided")
        return v


class URLResponse(BaseModel):
    id: uuid.UUID
    code: str
    long_url: str
    short_url: str
    created_at: datetime.datetime

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
    cache: HealthStatus
