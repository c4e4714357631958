"""
Case study & favorite models — the community content.
"""

from __future__ import annotations

from sqlalchemy import (JSON, BigInteger, Boolean, Column, ForeignKey, Index,
                        Integer, String, Text, UniqueConstraint)
from sqlalchemy.orm import relationship

from casebook.core.time import now_ms
from casebook.db.base import Base

CATEGORIES = ("prompt", "automation", "tools", "business", "activation")


class CaseStudy(Base):
    __tablename__ = "case_studies"
    __table_args__ = (Index("ix_case_studies_user_created", "user_id", "created_at"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    title: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    description: str = Column(Text, nullable=False)  # type: ignore[assignment]
    category: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    # prompt | automation | tools | business | activation
    tools: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    challenge: str = Column(Text, nullable=False)  # type: ignore[assignment]
    solution: str = Column(Text, nullable=False)  # type: ignore[assignment]
    steps: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    impact: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    thumbnail_url: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    thumbnail_key: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    tags: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    is_recommended: bool = Column(Boolean, nullable=False, default=False, server_default="0")  # type: ignore[assignment]
    created_at: int = Column(BigInteger, nullable=False, default=now_ms, index=True)  # type: ignore[assignment]
    updated_at: int = Column(BigInteger, nullable=False, default=now_ms)  # type: ignore[assignment]

    favorites = relationship(
        "Favorite",
        back_populates="case_study",
        cascade="all, delete-orphan",
    )


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "case_study_id", name="uq_favorite_user_case"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    case_study_id: int = Column(Integer, ForeignKey("case_studies.id"), nullable=False)  # type: ignore[assignment]
    created_at: int = Column(BigInteger, nullable=False, default=now_ms)  # type: ignore[assignment]

    case_study = relationship("CaseStudy", back_populates="favorites")
