"""
FastAPI dependencies — database session, repositories and auth guards.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from casebook.core.config import settings
from casebook.core.security import decode_session_token
from casebook.crud.case_studies import CaseStudyRepository
from casebook.crud.users import UserRepository
from casebook.db.session import get_session_factory
from casebook.models.user import User

# We use auto_error=False so we can fall back to the session cookie
bearer_scheme = HTTPBearer(auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession | None, None]:
    """Yield a session, or ``None`` when the database is not initialised."""
    factory = get_session_factory()
    if factory is None:
        yield None
        return
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Repositories ────────────────────────────────────────────────────
def get_user_repository(db: AsyncSession | None = Depends(get_db)) -> UserRepository:
    return UserRepository(db, owner_open_id=settings.OWNER_OPEN_ID)


def get_case_study_repository(
    db: AsyncSession | None = Depends(get_db),
) -> CaseStudyRepository:
    return CaseStudyRepository(db)


# ── Auth dependencies ───────────────────────────────────────────────
async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    users: UserRepository = Depends(get_user_repository),
) -> User | None:
    """Resolve the session from header OR cookie; ``None`` for anonymous callers."""

    # Priority: Header > Cookie
    token = credentials.credentials if credentials else None
    if not token:
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None

    payload = decode_session_token(token)
    if payload is None:
        return None
    return await users.get_by_open_id(payload["sub"])


async def get_current_user(
    user: User | None = Depends(get_optional_user),
) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please login",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_poster(
    current_user: User = Depends(get_current_user),
) -> User:
    """Only accounts signed in through the posting provider may write case studies."""
    if current_user.login_method != settings.POSTING_LOGIN_METHOD:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Google login required to post.",
        )
    return current_user


async def require_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """Only allow admin role to proceed."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
