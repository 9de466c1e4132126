"""Request, response and claim schemas for the auth routes."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class UserRecord:
    """Read-only view of a stored user."""

    id: uuid.UUID | str
    username: str
    email: str
    password_digest: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LoginRequest(BaseModel):
    # Optional so that missing fields reach the service and become a 400
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class IdentityClaim(BaseModel):
    """Sanitized identity embedded in a token. Never holds password material."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    username: str
    email: str

    @classmethod
    def from_record(cls, record: UserRecord) -> "IdentityClaim":
        return cls(id=str(record.id), username=record.username, email=record.email)

    def to_claim(self) -> Dict[str, Any]:
        return self.model_dump()


class AuthTokenResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    auth_token: str = Field(..., alias="authToken")


class ErrorResponse(BaseModel):
    message: str
