"""Pydantic schemas for users and incoming provider identities."""

from __future__ import annotations

from pydantic import BaseModel

from casebook.models.user import Role


class UserIdentity(BaseModel):
    """Identity reported by the provider, reconciled by ``UserRepository.upsert``.

    Optional fields are three-state: a field left out of the constructor is
    "not provided" (the stored value is kept), ``None`` clears the stored
    value, anything else overwrites it. Use ``model_fields_set`` to tell the
    first two apart.
    """

    open_id: str | None = None
    name: str | None = None
    email: str | None = None
    login_method: str | None = None
    last_signed_in: int | None = None
    role: Role | None = None


class UserRead(BaseModel):
    id: int
    open_id: str
    name: str | None
    email: str | None
    login_method: str | None
    role: Role
    created_at: int
    updated_at: int
    last_signed_in: int

    model_config = {"from_attributes": True}


class RoleUpdate(BaseModel):
    role: Role
