"""
Auth endpoints — OAuth callback, current user & logout.
"""

import logging

import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError

from casebook.api.v1.deps import get_optional_user, get_user_repository
from casebook.core.config import settings
from casebook.core.security import create_session_token, session_max_age_seconds
from casebook.core.time import now_ms
from casebook.crud.users import UserRepository
from casebook.models.user import User
from casebook.schemas.system import LogoutResponse
from casebook.schemas.user import UserIdentity, UserRead
from casebook.services.identity import OAuthIdentityProvider, get_identity_provider

# Rate limiter — keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/callback")
@limiter.limit("10/minute")
async def oauth_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    provider: OAuthIdentityProvider = Depends(get_identity_provider),
    users: UserRepository = Depends(get_user_repository),
) -> Response:
    """Finish the OAuth flow: reconcile the user, set the session cookie, go home."""
    if not code or not state:
        return _error(400, "code and state are required")

    try:
        access_token = await provider.exchange_code(code, state)
        profile = await provider.get_user_info(access_token)

        if not profile.open_id or not profile.open_id.strip():
            return _error(400, "openId missing from user info")

        await users.upsert(
            UserIdentity(
                open_id=profile.open_id,
                name=profile.name or None,
                email=profile.email,
                login_method=profile.login_method or profile.platform,
                last_signed_in=now_ms(),
            )
        )
    except (httpx.HTTPError, KeyError, ValueError, SQLAlchemyError) as exc:
        logger.error("[OAuth] Callback failed: %s", exc, exc_info=True)
        return _error(500, "OAuth callback failed")

    session_token = create_session_token(profile.open_id, name=profile.name or "")
    response = RedirectResponse(url="/", status_code=302)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,  # Set to True in HTTPS production
        samesite="lax",
        max_age=session_max_age_seconds(),
        path="/",
    )
    logger.info("[OAuth] User %s signed in", profile.open_id)
    return response


@router.get("/me", response_model=UserRead | None)
async def read_current_user(
    current_user: User | None = Depends(get_optional_user),
) -> User | None:
    """Return profile of the currently authenticated user, or null."""
    return current_user


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response) -> LogoutResponse:
    """Clear the session cookie."""
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return LogoutResponse(success=True)
