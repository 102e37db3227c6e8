from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.auth.dependencies import get_current_user
from schoolerp.auth.schemas import CurrentUser
from schoolerp.core.exceptions import ServiceError
from schoolerp.db.session import get_db

from .schemas import TeacherSubjectCreate, TeacherSubjectResponse
from . import service

router = APIRouter(prefix="/api/v1/teacher-subjects", tags=["teacher-subjects"])


@router.get("", response_model=List[TeacherSubjectResponse])
async def list_assignments(
    teacher_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    academic_year: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[TeacherSubjectResponse]:
    return await service.list_assignments(
        db, current_user, teacher_id=teacher_id, class_id=class_id, academic_year=academic_year
    )


@router.post("", response_model=TeacherSubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    payload: TeacherSubjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TeacherSubjectResponse:
    try:
        return await service.create_assignment(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    deleted = await service.delete_assignment(db, current_user, assignment_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
