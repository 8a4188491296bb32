# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class management API endpoints.

This module provides endpoints for class management:
- POST / - Create a new class
- GET / - List classes of the school (or of one teacher)
- GET /{class_id} - Get class details
- PATCH /{class_id} - Update class
- DELETE /{class_id} - Delete class with its assignments and materials
- POST /{class_id}/invite-code - Regenerate the invite code

Roster endpoints:
- GET /{class_id}/students - List enrolled students
- GET /{class_id}/students/eligible - List active students not enrolled
- POST /{class_id}/students - Enroll a student
- DELETE /{class_id}/students/{student_id} - Remove a student
- POST /join - Join a class with an invite code (students)

Class mutations require school admin access; roster changes require a
teacher or admin. Domain errors are mapped to HTTP statuses by the
application's exception handler.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    get_db,
    require_admin,
    require_auth,
    require_student,
    require_teacher_or_admin,
)
from src.api.middleware.auth import CurrentUser
from src.domains.class_ import ClassService
from src.domains.enrollment import EnrollmentService
from src.models.class_ import (
    ClassCreateRequest,
    ClassDeleteResponse,
    ClassListResponse,
    ClassResponse,
    ClassUpdateRequest,
    InviteCodeResponse,
)
from src.models.enrollment import (
    EnrollmentResponse,
    EnrollStudentRequest,
    JoinClassRequest,
    RosterResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ClassService:
    """Get class service instance.

    Args:
        db: Database session.

    Returns:
        Configured ClassService instance.
    """
    return ClassService(db=db)


def _get_enrollment_service(db: AsyncSession) -> EnrollmentService:
    """Get enrollment service instance.

    Args:
        db: Database session.

    Returns:
        Configured EnrollmentService instance.
    """
    return EnrollmentService(db=db)


@router.post(
    "",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
    description="Create a new class with a generated invite code. Requires admin access.",
)
async def create_class(
    data: ClassCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    """Create a new class.

    Args:
        data: Class creation request.
        current_user: Authenticated admin.
        db: Database session.

    Returns:
        Created class response.
    """
    logger.info("Creating class: %s by %s", data.name, current_user.id)
    return await _get_service(db).create_class(current_user.to_context(), data)


@router.get(
    "",
    response_model=ClassListResponse,
    summary="List classes",
    description="List the classes of the caller's school, optionally only one teacher's.",
)
async def list_classes(
    teacher_id: Annotated[str | None, Query(description="Filter by owning teacher")] = None,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> ClassListResponse:
    """List classes.

    Args:
        teacher_id: Optional owning teacher filter.
        current_user: Authenticated teacher or admin.
        db: Database session.

    Returns:
        Classes ordered by name.
    """
    service = _get_service(db)
    if teacher_id:
        classes = await service.list_by_teacher(current_user.school_id, teacher_id)
    else:
        classes = await service.list_by_school(current_user.school_id)
    return ClassListResponse(items=classes, total=len(classes))


@router.post(
    "/join",
    response_model=EnrollmentResponse,
    summary="Join class",
    description="Join a class of the student's school using its invite code.",
)
async def join_class(
    data: JoinClassRequest,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentResponse:
    """Join a class by invite code.

    Args:
        data: Invite code.
        current_user: Authenticated student.
        db: Database session.

    Returns:
        Enrollment result; changed is False if already a member.
    """
    return await _get_enrollment_service(db).join_by_invite_code(
        current_user.to_context(), data.invite_code
    )


@router.get(
    "/{class_id}",
    response_model=ClassResponse,
    summary="Get class",
)
async def get_class(
    class_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    """Get class details.

    Args:
        class_id: Class identifier.
        current_user: Authenticated user.
        db: Database session.

    Returns:
        Class details.
    """
    return await _get_service(db).get_class(current_user.to_context(), class_id)


@router.patch(
    "/{class_id}",
    response_model=ClassResponse,
    summary="Update class",
    description="Update a class. Changing the type clears fields that no longer apply.",
)
async def update_class(
    class_id: str,
    data: ClassUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    """Update a class.

    Args:
        class_id: Class identifier.
        data: Fields to update.
        current_user: Authenticated admin.
        db: Database session.

    Returns:
        Updated class.
    """
    return await _get_service(db).update_class(current_user.to_context(), class_id, data)


@router.delete(
    "/{class_id}",
    response_model=ClassDeleteResponse,
    summary="Delete class",
    description=(
        "Delete a class together with its assignments, their submissions and its "
        "learning materials, and unlink its students."
    ),
)
async def delete_class(
    class_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ClassDeleteResponse:
    """Delete a class.

    Args:
        class_id: Class identifier.
        current_user: Authenticated admin.
        db: Database session.

    Returns:
        Counts of removed records.
    """
    return await _get_service(db).delete_class(current_user.to_context(), class_id)


@router.post(
    "/{class_id}/invite-code",
    response_model=InviteCodeResponse,
    summary="Regenerate invite code",
)
async def regenerate_invite_code(
    class_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> InviteCodeResponse:
    """Replace the class invite code.

    Args:
        class_id: Class identifier.
        current_user: Authenticated admin.
        db: Database session.

    Returns:
        The new invite code.
    """
    return await _get_service(db).regenerate_invite_code(current_user.to_context(), class_id)


@router.get(
    "/{class_id}/students",
    response_model=RosterResponse,
    summary="List enrolled students",
)
async def list_roster(
    class_id: str,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> RosterResponse:
    """List the class roster.

    Args:
        class_id: Class identifier.
        current_user: Authenticated teacher or admin.
        db: Database session.

    Returns:
        Students on the roster.
    """
    return await _get_enrollment_service(db).list_roster(current_user.to_context(), class_id)


@router.get(
    "/{class_id}/students/eligible",
    response_model=RosterResponse,
    summary="List eligible students",
    description="Active students of the school who are not on the roster.",
)
async def list_eligible_students(
    class_id: str,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> RosterResponse:
    """List students that can be enrolled.

    Args:
        class_id: Class identifier.
        current_user: Authenticated teacher or admin.
        db: Database session.

    Returns:
        Active non-member students.
    """
    return await _get_enrollment_service(db).list_eligible_non_members(
        current_user.to_context(), class_id
    )


@router.post(
    "/{class_id}/students",
    response_model=EnrollmentResponse,
    summary="Enroll student",
    description="Add a student to the class. Enrolling a member again is a no-op.",
)
async def enroll_student(
    class_id: str,
    data: EnrollStudentRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentResponse:
    """Enroll a student.

    Args:
        class_id: Class identifier.
        data: Student to enroll.
        current_user: Authenticated teacher or admin.
        db: Database session.

    Returns:
        Enrollment result with the student's subjects.
    """
    return await _get_enrollment_service(db).enroll(
        current_user.to_context(), class_id, data.student_id
    )


@router.delete(
    "/{class_id}/students/{student_id}",
    response_model=EnrollmentResponse,
    summary="Remove student",
    description="Remove a student from the class. Inherited subjects are kept.",
)
async def remove_student(
    class_id: str,
    student_id: str,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentResponse:
    """Remove a student.

    Args:
        class_id: Class identifier.
        student_id: Student identifier.
        current_user: Authenticated teacher or admin.
        db: Database session.

    Returns:
        Enrollment result; changed is False if the student was not a member.
    """
    return await _get_enrollment_service(db).remove(
        current_user.to_context(), class_id, student_id
    )
