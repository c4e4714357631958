"""
Case study CRUD + favorites.

- GET operations are public; ``is_favorite`` is filled in for signed-in callers.
- POST / PUT require a user signed in through the posting provider.
- DELETE is allowed for the author or an admin.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from casebook.api.v1.deps import (get_case_study_repository, get_current_user,
                                  get_optional_user, require_poster)
from casebook.crud.case_studies import CaseStudyRepository
from casebook.models.case_study import CaseStudy
from casebook.models.user import User
from casebook.schemas.case_study import (CaseStudyCreate, CaseStudyRead,
                                         CaseStudyUpdate, CreatedResponse,
                                         FavoriteToggleResponse,
                                         SuccessResponse)
from casebook.services.tags import generate_tags

router = APIRouter(tags=["case-studies"])
logger = logging.getLogger(__name__)


def _to_read(case_study: CaseStudy, is_favorite: bool) -> CaseStudyRead:
    read = CaseStudyRead.model_validate(case_study)
    read.is_favorite = is_favorite
    return read


@router.get("/case-studies", response_model=list[CaseStudyRead])
async def list_case_studies(
    repo: CaseStudyRepository = Depends(get_case_study_repository),
    current_user: User | None = Depends(get_optional_user),
) -> list[CaseStudyRead]:
    """List every case study, oldest first."""
    cases = await repo.list_all()
    favorite_ids = await repo.favorite_ids(current_user.id) if current_user else set()
    return [_to_read(c, c.id in favorite_ids) for c in cases]


@router.get("/case-studies/{case_study_id}", response_model=CaseStudyRead | None)
async def get_case_study(
    case_study_id: int,
    repo: CaseStudyRepository = Depends(get_case_study_repository),
    current_user: User | None = Depends(get_optional_user),
) -> CaseStudyRead | None:
    case_study = await repo.get(case_study_id)
    if case_study is None:
        return None
    is_fav = await repo.is_favorite(current_user.id, case_study_id) if current_user else False
    return _to_read(case_study, is_fav)


@router.post("/case-studies", response_model=CreatedResponse, status_code=201)
async def create_case_study(
    body: CaseStudyCreate,
    repo: CaseStudyRepository = Depends(get_case_study_repository),
    current_user: User = Depends(require_poster),
) -> CreatedResponse:
    """Publish a new case study; tags are generated from its content."""
    tags = await generate_tags(body.title, body.description, body.tools, body.category)
    case_study = await repo.create(current_user.id, body, tags)
    return CreatedResponse(success=True, id=case_study.id)


@router.put("/case-studies/{case_study_id}", response_model=SuccessResponse)
async def update_case_study(
    case_study_id: int,
    body: CaseStudyUpdate,
    repo: CaseStudyRepository = Depends(get_case_study_repository),
    current_user: User = Depends(require_poster),
) -> SuccessResponse:
    """Edit a case study (author only). Tags are regenerated."""
    case_study = await repo.get(case_study_id)
    if case_study is None:
        return SuccessResponse(success=False)
    if case_study.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You do not have permission to edit this case study")

    tags = await generate_tags(body.title, body.description, body.tools, body.category)
    await repo.update(case_study_id, {**body.model_dump(), "tags": tags})
    logger.info("Case study %s updated by user %s", case_study_id, current_user.id)
    return SuccessResponse(success=True)


@router.delete("/case-studies/{case_study_id}", response_model=SuccessResponse)
async def delete_case_study(
    case_study_id: int,
    repo: CaseStudyRepository = Depends(get_case_study_repository),
    current_user: User = Depends(get_current_user),
) -> SuccessResponse:
    """Delete a case study (author or admin)."""
    case_study = await repo.get(case_study_id)
    if case_study is None:
        return SuccessResponse(success=False)
    if case_study.user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(status_code=403, detail="You do not have permission to delete this case study")

    await repo.delete(case_study_id)
    return SuccessResponse(success=True)


@router.post("/case-studies/{case_study_id}/favorite", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    case_study_id: int,
    repo: CaseStudyRepository = Depends(get_case_study_repository),
    current_user: User = Depends(get_current_user),
) -> FavoriteToggleResponse:
    if await repo.get(case_study_id) is None:
        raise HTTPException(status_code=404, detail="Case study not found")
    is_fav = await repo.toggle_favorite(current_user.id, case_study_id)
    return FavoriteToggleResponse(is_favorite=is_fav)


@router.get("/favorites", response_model=list[CaseStudyRead])
async def list_favorites(
    repo: CaseStudyRepository = Depends(get_case_study_repository),
    current_user: User = Depends(get_current_user),
) -> list[CaseStudyRead]:
    """The caller's favorites, oldest favorite first."""
    cases = await repo.list_favorites(current_user.id)
    return [_to_read(c, True) for c in cases]
