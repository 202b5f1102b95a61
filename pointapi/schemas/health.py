"""Pydantic models for health endpoints."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    """Response model for service health checks."""

    status: str = "healthy"
    database_connected: bool = True
    policy_loaded: bool = True
    active_policy_id: Optional[int] = None
    checked_at: Optional[datetime] = None
    error: Optional[str] = None
