"""Pydantic schemas for system endpoints."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

TITLE_MAX_LENGTH = 1200
CONTENT_MAX_LENGTH = 20000


class NotifyOwnerRequest(BaseModel):
    title: str
    content: str

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Notification title is required")
        if len(v) > TITLE_MAX_LENGTH:
            raise ValueError(f"Notification title must be at most {TITLE_MAX_LENGTH} characters")
        return v

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Notification content is required")
        if len(v) > CONTENT_MAX_LENGTH:
            raise ValueError(f"Notification content must be at most {CONTENT_MAX_LENGTH} characters")
        return v


class HealthResponse(BaseModel):
    status: str
    database: bool


class LogoutResponse(BaseModel):
    success: bool
