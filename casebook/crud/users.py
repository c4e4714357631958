"""
User data access — login-identity reconciliation and the admin user directory.

``UserRepository.upsert`` is the only writer used by the sign-in path. It
touches exactly the columns the caller supplied, so a provider that omits a
field on a later login never blanks what an earlier login captured.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from casebook.core.exceptions import ValidationError
from casebook.core.time import now_ms
from casebook.db.session import dialect_insert
from casebook.models.case_study import CaseStudy, Favorite
from casebook.models.user import Role, User
from casebook.schemas.user import UserIdentity

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("name", "email", "login_method")


class UserRepository:
    """Users table access bound to one session.

    ``db`` is ``None`` when the process has no database yet; every method
    then logs a warning and returns an empty result instead of failing.
    """

    def __init__(
        self,
        db: AsyncSession | None,
        *,
        owner_open_id: str | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.db = db
        self.owner_open_id = owner_open_id
        self._clock = clock

    # ── Identity reconciliation ─────────────────────────────────────
    def build_upsert(self, identity: UserIdentity) -> tuple[dict[str, Any], dict[str, Any]]:
        """Return ``(insert_values, update_set)`` for *identity*.

        Only fields present in ``identity.model_fields_set`` are written;
        an explicit ``None`` clears the column.
        """
        open_id = identity.open_id or ""
        if not open_id.strip():
            raise ValidationError("User openId is required for upsert")

        provided = identity.model_fields_set
        values: dict[str, Any] = {"open_id": open_id}
        update_set: dict[str, Any] = {}

        for field in _TEXT_FIELDS:
            if field not in provided:
                continue
            value = getattr(identity, field)
            values[field] = value
            update_set[field] = value

        if identity.last_signed_in is not None:
            values["last_signed_in"] = identity.last_signed_in
            update_set["last_signed_in"] = identity.last_signed_in

        if identity.role is not None:
            values["role"] = identity.role.value
            update_set["role"] = identity.role.value
        elif self.owner_open_id and open_id == self.owner_open_id:
            values["role"] = Role.ADMIN.value
            update_set["role"] = Role.ADMIN.value

        now = self._clock()
        values.setdefault("last_signed_in", now)
        # Every login advances the last-seen marker, insert or update.
        update_set.setdefault("last_signed_in", now)
        update_set["updated_at"] = now
        return values, update_set

    async def upsert(self, identity: UserIdentity) -> None:
        """Insert or update the user row for ``identity.open_id`` in one statement.

        ``last_signed_in`` never moves backwards: a stale value supplied by
        the caller leaves a newer stored marker in place.
        """
        values, update_set = self.build_upsert(identity)

        if self.db is None:
            logger.warning("[Database] Cannot upsert user: database not available")
            return

        insert_stmt = dialect_insert(self.db)(User).values(**values)
        incoming = insert_stmt.excluded.last_signed_in
        update_set["last_signed_in"] = case(
            (User.last_signed_in.is_(None), incoming),
            (incoming > User.last_signed_in, incoming),
            else_=User.last_signed_in,
        )
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=[User.open_id], set_=update_set
        )
        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("[Database] Failed to upsert user: %s", exc, exc_info=True)
            raise

    # ── Lookups ─────────────────────────────────────────────────────
    async def get_by_open_id(self, open_id: str) -> User | None:
        if self.db is None:
            logger.warning("[Database] Cannot get user: database not available")
            return None
        result = await self.db.execute(
            select(User)
            .where(User.open_id == open_id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: int) -> User | None:
        if self.db is None:
            logger.warning("[Database] Cannot get user by id: database not available")
            return None
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[User]:
        if self.db is None:
            logger.warning("[Database] Cannot list users: database not available")
            return []
        result = await self.db.execute(
            select(User).order_by(User.created_at.desc(), User.id.desc())
        )
        return list(result.scalars().all())

    # ── Administration ──────────────────────────────────────────────
    async def update_role(self, user_id: int, role: Role) -> bool:
        """Set *role* on a user. The only path that may downgrade an admin."""
        if self.db is None:
            logger.warning("[Database] Cannot update user role: database not available")
            return False
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(role=role.value, updated_at=self._clock())
        )
        await self.db.commit()
        if result.rowcount:
            logger.info("User %s role set to %s", user_id, role.value)
        return bool(result.rowcount)

    async def reassign_case_studies(self, from_user_id: int, to_user_id: int) -> int:
        if self.db is None:
            logger.warning("[Database] Cannot reassign case studies: database not available")
            return 0
        result = await self.db.execute(
            update(CaseStudy)
            .where(CaseStudy.user_id == from_user_id)
            .values(user_id=to_user_id, updated_at=self._clock())
        )
        await self.db.commit()
        logger.info(
            "Reassigned %d case studies from user %s to user %s",
            result.rowcount,
            from_user_id,
            to_user_id,
        )
        return result.rowcount

    async def delete(self, user_id: int) -> bool:
        """Delete a user and their favorites. Case studies must be reassigned first."""
        if self.db is None:
            logger.warning("[Database] Cannot delete user: database not available")
            return False
        await self.db.execute(delete(Favorite).where(Favorite.user_id == user_id))
        result = await self.db.execute(delete(User).where(User.id == user_id))
        await self.db.commit()
        return bool(result.rowcount)
