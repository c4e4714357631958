"""
Admin endpoints — user directory, role changes, deletion, owner notification.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from casebook.api.v1.deps import get_user_repository, require_admin
from casebook.crud.users import UserRepository
from casebook.models.user import User
from casebook.schemas.case_study import SuccessResponse
from casebook.schemas.system import NotifyOwnerRequest
from casebook.schemas.user import RoleUpdate, UserRead
from casebook.services.notification import notify_owner

router = APIRouter(tags=["admin"])
logger = logging.getLogger(__name__)


@router.get("/admin/users", response_model=list[UserRead])
async def list_users(
    users: UserRepository = Depends(get_user_repository),
    _admin: User = Depends(require_admin),
) -> list[User]:
    """All users, newest first."""
    return await users.list_all()


@router.put("/admin/users/{user_id}/role", response_model=UserRead)
async def update_user_role(
    user_id: int,
    body: RoleUpdate,
    users: UserRepository = Depends(get_user_repository),
    admin: User = Depends(require_admin),
) -> User:
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot change your own role")
    if not await users.update_role(user_id, body.role):
        raise HTTPException(status_code=404, detail="User not found")
    user = await users.get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.delete("/admin/users/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    users: UserRepository = Depends(get_user_repository),
    admin: User = Depends(require_admin),
) -> SuccessResponse:
    """Delete a user; their case studies move to the acting admin."""
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    if await users.get_by_id(user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")

    await users.reassign_case_studies(user_id, admin.id)
    await users.delete(user_id)
    logger.info("User %s deleted by admin %s", user_id, admin.id)
    return SuccessResponse(success=True)


@router.post("/system/notify-owner", response_model=SuccessResponse)
async def notify_owner_endpoint(
    body: NotifyOwnerRequest,
    _admin: User = Depends(require_admin),
) -> SuccessResponse:
    delivered = await notify_owner(body.title, body.content)
    return SuccessResponse(success=delivered)
