"""
Session domain models and schemas.

Request/response schemas for session operations.

Dependencies: pydantic
System role: Session API contracts
"""

from pydantic import BaseModel, ConfigDict, Field
import uuid
from datetime import datetime


class CreateSessionRequest(BaseModel):
    """Request schema for creating a new session."""

    title: str | None = Field(default=None, description="Session title")
    model: str | None = Field(default=None, description="Model the session starts with")


class SessionResponse(BaseModel):
    """Response schema for session operations."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    model: str
    created_at: datetime
    updated_at: datetime
