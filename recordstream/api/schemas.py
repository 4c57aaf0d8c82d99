"""Pydantic schemas for API responses."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(..., description="Overall service health")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Health check timestamp",
    )
    version: str = Field(..., description="Application version")
    source: str = Field(..., description="Configured record source")
    database: str | None = Field(
        default=None,
        description="Database connectivity (only for the database source)",
    )
    record_count: int | None = Field(
        default=None,
        description="Records available to stream, when cheaply known",
    )
    active_streams: int = Field(default=0, description="Record streams currently open")
    error: str | None = Field(default=None, description="Failure detail when unhealthy")
