"""
SnipStash Backend - Shared Pydantic Schemas
===========================================

What:  Base model for the camelCase JSON contract plus the error, health and
       message envelopes shared by every router.
How:   Fields are declared in snake_case; `alias_generator=to_camel` makes
       the wire names camelCase (userId, createdAt) in both directions.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case names still validate."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable outcome")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "forbidden")
        message: Human-readable description for display to users
        details: Optional extra context. For store errors this is the raw
                 driver message; for unexpected errors it is only filled
                 outside production.
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "forbidden",
            "message": "You can only update your own snippets",
            "request_id": "1f0c2a9e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Store connectivity: connected, disconnected, unconfigured")
    uptime_seconds: float = Field(description="Seconds since service started")
