"""
Case study & favorite data access.

Reads degrade to empty results when the database is not initialised;
writes raise ``StorageUnavailable``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from casebook.core.exceptions import StorageUnavailable
from casebook.core.time import now_ms
from casebook.db.session import dialect_insert
from casebook.models.case_study import CaseStudy, Favorite
from casebook.schemas.case_study import CaseStudyCreate

logger = logging.getLogger(__name__)


class CaseStudyRepository:
    def __init__(self, db: AsyncSession | None, *, clock: Callable[[], int] = now_ms) -> None:
        self.db = db
        self._clock = clock

    def _require_db(self) -> AsyncSession:
        if self.db is None:
            raise StorageUnavailable("Database not available")
        return self.db

    # ── Case studies ────────────────────────────────────────────────
    async def list_all(self) -> list[CaseStudy]:
        if self.db is None:
            return []
        result = await self.db.execute(
            select(CaseStudy).order_by(CaseStudy.created_at, CaseStudy.id)
        )
        return list(result.scalars().all())

    async def get(self, case_study_id: int) -> CaseStudy | None:
        if self.db is None:
            return None
        result = await self.db.execute(
            select(CaseStudy)
            .where(CaseStudy.id == case_study_id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: int) -> list[CaseStudy]:
        if self.db is None:
            return []
        result = await self.db.execute(
            select(CaseStudy)
            .where(CaseStudy.user_id == user_id)
            .order_by(CaseStudy.created_at, CaseStudy.id)
        )
        return list(result.scalars().all())

    async def create(self, user_id: int, data: CaseStudyCreate, tags: list[str]) -> CaseStudy:
        db = self._require_db()
        now = self._clock()
        case_study = CaseStudy(
            user_id=user_id,
            **data.model_dump(),
            tags=tags,
            is_recommended=False,
            created_at=now,
            updated_at=now,
        )
        db.add(case_study)
        await db.commit()
        await db.refresh(case_study)
        logger.info("Case study %s created by user %s", case_study.id, user_id)
        return case_study

    async def update(self, case_study_id: int, fields: dict[str, Any]) -> bool:
        """Apply *fields* to a case study and bump ``updated_at``."""
        db = self._require_db()
        values = {**fields, "updated_at": self._clock()}
        result = await db.execute(
            update(CaseStudy).where(CaseStudy.id == case_study_id).values(**values)
        )
        await db.commit()
        return bool(result.rowcount)

    async def delete(self, case_study_id: int) -> bool:
        db = self._require_db()
        await db.execute(delete(Favorite).where(Favorite.case_study_id == case_study_id))
        result = await db.execute(delete(CaseStudy).where(CaseStudy.id == case_study_id))
        await db.commit()
        if result.rowcount:
            logger.info("Case study %s deleted", case_study_id)
        return bool(result.rowcount)

    # ── Favorites ───────────────────────────────────────────────────
    async def list_favorites(self, user_id: int) -> list[CaseStudy]:
        if self.db is None:
            return []
        result = await self.db.execute(
            select(CaseStudy)
            .join(Favorite, Favorite.case_study_id == CaseStudy.id)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at, Favorite.id)
        )
        return list(result.scalars().all())

    async def favorite_ids(self, user_id: int) -> set[int]:
        if self.db is None:
            return set()
        result = await self.db.execute(
            select(Favorite.case_study_id).where(Favorite.user_id == user_id)
        )
        return set(result.scalars().all())

    async def is_favorite(self, user_id: int, case_study_id: int) -> bool:
        if self.db is None:
            return False
        result = await self.db.execute(
            select(Favorite.id)
            .where(and_(Favorite.user_id == user_id, Favorite.case_study_id == case_study_id))
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def add_favorite(self, user_id: int, case_study_id: int) -> bool:
        """Return ``False`` when the favorite already exists."""
        db = self._require_db()
        stmt = (
            dialect_insert(db)(Favorite)
            .values(user_id=user_id, case_study_id=case_study_id, created_at=self._clock())
            .on_conflict_do_nothing(index_elements=[Favorite.user_id, Favorite.case_study_id])
        )
        result = await db.execute(stmt)
        await db.commit()
        if not result.rowcount:
            logger.info("Favorite already present for user %s / case %s", user_id, case_study_id)
            return False
        return True

    async def remove_favorite(self, user_id: int, case_study_id: int) -> None:
        db = self._require_db()
        await db.execute(
            delete(Favorite).where(
                and_(Favorite.user_id == user_id, Favorite.case_study_id == case_study_id)
            )
        )
        await db.commit()

    async def toggle_favorite(self, user_id: int, case_study_id: int) -> bool:
        """Flip the favorite state and return the new one."""
        if await self.is_favorite(user_id, case_study_id):
            await self.remove_favorite(user_id, case_study_id)
            return False
        await self.add_favorite(user_id, case_study_id)
        return True
