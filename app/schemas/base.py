"""Base schemas for the application."""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema class with common configuration."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class HealthResponse(BaseSchema):
    """Liveness payload returned by GET on the push endpoints."""
    ok: bool = True
    name: str
    commit: str | None = None
    time: str
