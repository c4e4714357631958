"""
User model — OAuth identities & role-based access control.
"""

from __future__ import annotations

import enum

from sqlalchemy import BigInteger, Column, Integer, String

from casebook.core.time import now_ms
from casebook.db.base import Base


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    open_id: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    name: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    email: str | None = Column(String(320), nullable=True)  # type: ignore[assignment]
    login_method: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=Role.USER.value,
        server_default=Role.USER.value,
    )  # user | admin
    # Epoch milliseconds
    created_at: int = Column(BigInteger, nullable=False, default=now_ms)  # type: ignore[assignment]
    updated_at: int = Column(  # type: ignore[assignment]
        BigInteger, nullable=False, default=now_ms, onupdate=now_ms
    )
    last_signed_in: int = Column(BigInteger, nullable=False, default=now_ms)  # type: ignore[assignment]

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
