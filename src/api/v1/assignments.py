# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment API endpoints.

This module provides endpoints for assignments:
- POST / - Create an assignment
- GET / - List assignments of a class, or of a teacher
- GET /student-view - A student's assignments in a class with status
- GET /{assignment_id} - Get assignment details
- PATCH /{assignment_id} - Update assignment (owner or admin)
- DELETE /{assignment_id} - Delete assignment and its submissions
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_auth, require_teacher_or_admin
from src.api.middleware.auth import CurrentUser
from src.domains.assignment import AssignmentService
from src.models.assignment import (
    AssignmentCreateRequest,
    AssignmentDeleteResponse,
    AssignmentListResponse,
    AssignmentResponse,
    AssignmentUpdateRequest,
    StudentAssignmentListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> AssignmentService:
    """Get assignment service instance.

    Args:
        db: Database session.

    Returns:
        Configured AssignmentService instance.
    """
    return AssignmentService(db=db)


@router.post(
    "",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create assignment",
)
async def create_assignment(
    data: AssignmentCreateRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> AssignmentResponse:
    """Create an assignment owned by the caller.

    Args:
        data: Assignment data.
        current_user: Authenticated teacher or admin.
        db: Database session.

    Returns:
        Created assignment.
    """
    logger.info("Creating assignment '%s' for class %s", data.title, data.class_id)
    return await _get_service(db).create(current_user.to_context(), data)


@router.get(
    "",
    response_model=AssignmentListResponse,
    summary="List assignments",
    description="List a class's assignments by deadline, or a teacher's assignments.",
)
async def list_assignments(
    class_id: Annotated[str | None, Query(description="Class to list")] = None,
    teacher_id: Annotated[str | None, Query(description="Owning teacher")] = None,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> AssignmentListResponse:
    """List assignments.

    Args:
        class_id: Class filter.
        teacher_id: Teacher filter; combined with class_id when both are set.
        current_user: Authenticated user.
        db: Database session.

    Returns:
        Matching assignments.

    Raises:
        HTTPException: If neither filter is given.
    """
    service = _get_service(db)
    ctx = current_user.to_context()
    if teacher_id:
        items = await service.list_by_teacher(ctx, teacher_id, class_id)
    elif class_id:
        items = await service.list_by_class(ctx, class_id)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="class_id or teacher_id is required",
        )
    return AssignmentListResponse(items=items, total=len(items))


@router.get(
    "/student-view",
    response_model=StudentAssignmentListResponse,
    summary="Student assignment view",
    description="A class's assignments with one student's submission status and grade.",
)
async def student_view(
    class_id: Annotated[str, Query(description="Class identifier")],
    student_id: Annotated[str | None, Query(description="Defaults to the caller")] = None,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> StudentAssignmentListResponse:
    """List a student's assignments in a class.

    Args:
        class_id: Class identifier.
        student_id: Student identifier; the caller when omitted.
        current_user: Authenticated user.
        db: Database session.

    Returns:
        Assignments sorted by deadline with status.
    """
    return await _get_service(db).list_for_student(
        current_user.to_context(), class_id, student_id or current_user.id
    )


@router.get(
    "/{assignment_id}",
    response_model=AssignmentResponse,
    summary="Get assignment",
)
async def get_assignment(
    assignment_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> AssignmentResponse:
    """Get assignment details.

    Args:
        assignment_id: Assignment identifier.
        current_user: Authenticated user.
        db: Database session.

    Returns:
        Assignment details.
    """
    return await _get_service(db).get_by_id(current_user.to_context(), assignment_id)


@router.patch(
    "/{assignment_id}",
    response_model=AssignmentResponse,
    summary="Update assignment",
)
async def update_assignment(
    assignment_id: str,
    data: AssignmentUpdateRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> AssignmentResponse:
    """Update an assignment.

    Args:
        assignment_id: Assignment identifier.
        data: Fields to update.
        current_user: Owning teacher or admin.
        db: Database session.

    Returns:
        Updated assignment.
    """
    return await _get_service(db).update(current_user.to_context(), assignment_id, data)


@router.delete(
    "/{assignment_id}",
    response_model=AssignmentDeleteResponse,
    summary="Delete assignment",
)
async def delete_assignment(
    assignment_id: str,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> AssignmentDeleteResponse:
    """Delete an assignment and its submissions.

    Args:
        assignment_id: Assignment identifier.
        current_user: Owning teacher or admin.
        db: Database session.

    Returns:
        Number of deleted submissions.
    """
    return await _get_service(db).delete(current_user.to_context(), assignment_id)
