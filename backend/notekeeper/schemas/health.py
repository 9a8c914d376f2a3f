"""Response model for GET /health."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    Service and dependency status.

    `status` is "unhealthy" whenever the database cannot be reached.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
