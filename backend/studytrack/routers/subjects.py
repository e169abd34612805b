"""
Subjects API Router

Endpoints:
- GET /api/subjects - List subjects
- POST /api/subjects - Create a subject
- GET /api/subjects/{id} - Get a subject
- PATCH /api/subjects/{id} - Update a subject
- DELETE /api/subjects/{id} - Delete a subject
"""

import logging

from fastapi import APIRouter, Depends, status

from studytrack.dependencies import get_clock, get_repository
from studytrack.middleware.error_handling import NotFoundError, handle_endpoint_errors
from studytrack.models.base import SuccessResponse
from studytrack.models.study import Subject, SubjectCreate, SubjectUpdate
from studytrack.services.study.clock import Clock
from studytrack.services.study.repository import StudyRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/subjects", tags=["subjects"])


@router.get("", response_model=list[Subject])
@handle_endpoint_errors("List subjects")
async def list_subjects(
    repository: StudyRepository = Depends(get_repository),
) -> list[Subject]:
    return await repository.list_subjects()


@router.post("", response_model=Subject, status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors("Create subject")
async def create_subject(
    body: SubjectCreate,
    repository: StudyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> Subject:
    subject = await repository.create_subject(body, clock.now_ms())
    logger.info(f"Created subject {subject.id} ({subject.name})")
    return subject


@router.get("/{subject_id}", response_model=Subject)
@handle_endpoint_errors("Get subject")
async def get_subject(
    subject_id: str,
    repository: StudyRepository = Depends(get_repository),
) -> Subject:
    subject = await repository.get_subject(subject_id)
    if subject is None:
        raise NotFoundError(f"Subject {subject_id} not found")
    return subject


@router.patch("/{subject_id}", response_model=Subject)
@handle_endpoint_errors("Update subject")
async def update_subject(
    subject_id: str,
    body: SubjectUpdate,
    repository: StudyRepository = Depends(get_repository),
) -> Subject:
    """Rename or recolor a subject. The study-time total is not editable."""
    subject = await repository.update_subject(subject_id, body)
    if subject is None:
        raise NotFoundError(f"Subject {subject_id} not found")
    return subject


@router.delete("/{subject_id}", response_model=SuccessResponse)
@handle_endpoint_errors("Delete subject")
async def delete_subject(
    subject_id: str,
    repository: StudyRepository = Depends(get_repository),
) -> SuccessResponse:
    """
    Delete a subject.

    Sessions already recorded for it are kept so history and streaks do not
    change.
    """
    if not await repository.delete_subject(subject_id):
        raise NotFoundError(f"Subject {subject_id} not found")
    return SuccessResponse(message="Subject deleted")
