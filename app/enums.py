"""Shared enums for the URL shortener application.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "ResolveResult"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DISABLED = "disabled"


class RequestStatus(StrEnum):
    """Outcome label for allocation metrics."""

    SUCCESS = "success"
    EXHAUSTED = "exhausted"
    ERROR = "error"


class ResolveResult(StrEnum):
    """Outcome label for resolve metrics."""

    HIT = "hit"
    MISS = "miss"
    ERROR = "error"
