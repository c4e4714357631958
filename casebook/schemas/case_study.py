"""Pydantic schemas for case studies, favorites and generic responses."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

Category = Literal["prompt", "automation", "tools", "business", "activation"]


class CaseStudyBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category: Category
    tools: list[str]
    challenge: str = Field(min_length=1)
    solution: str = Field(min_length=1)
    steps: list[str]
    impact: str | None = None
    thumbnail_url: str | None = None
    thumbnail_key: str | None = None

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be empty")
        return v

    @field_validator("impact", "thumbnail_url", "thumbnail_key")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        # Empty optional strings are stored as NULL.
        return v or None


class CaseStudyCreate(CaseStudyBase):
    pass


class CaseStudyUpdate(CaseStudyBase):
    pass


class CaseStudyRead(BaseModel):
    id: int
    user_id: int
    title: str
    description: str
    category: str
    tools: list[str]
    challenge: str
    solution: str
    steps: list[str]
    impact: str | None
    thumbnail_url: str | None
    thumbnail_key: str | None
    tags: list[str]
    is_recommended: bool
    created_at: int
    updated_at: int
    is_favorite: bool = False

    model_config = {"from_attributes": True}


class CreatedResponse(BaseModel):
    success: bool
    id: int


class SuccessResponse(BaseModel):
    success: bool


class FavoriteToggleResponse(BaseModel):
    is_favorite: bool
