"""
Concurrent sign-in for the same identity.

Uses a file-backed SQLite database so every session gets its own
connection and the store's ON CONFLICT handling is what serialises them.
"""

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from casebook.crud.users import UserRepository
from casebook.db.base import Base
from casebook.models.user import User
from casebook.schemas.user import UserIdentity


@pytest.fixture
async def file_session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'users.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.mark.asyncio
async def test_concurrent_first_logins_create_one_row(file_session_factory):
    async def login(i: int) -> None:
        async with file_session_factory() as session:
            await UserRepository(session).upsert(
                UserIdentity(open_id="brand-new", name=f"Name {i}", login_method="google")
            )

    await asyncio.gather(*(login(i) for i in range(5)))

    async with file_session_factory() as session:
        count = (await session.execute(select(func.count()).select_from(User))).scalar_one()
        user = (
            await session.execute(select(User).where(User.open_id == "brand-new"))
        ).scalar_one()

    assert count == 1
    assert user.name in {f"Name {i}" for i in range(5)}
    assert user.login_method == "google"
    assert user.role == "user"
