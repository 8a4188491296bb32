# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission API endpoints.

- POST /assignments/{assignment_id}/submissions - Submit or resubmit (students)
- POST /assignments/{assignment_id}/uploads - Upload a file to submit
- GET /assignments/{assignment_id}/submissions - List submissions (staff)
- GET /assignments/{assignment_id}/submissions/mine - The caller's submission
- POST /submissions/{submission_id}/grade - Grade a submission (staff)
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    get_db,
    get_file_storage,
    require_student,
    require_teacher_or_admin,
)
from src.api.middleware.auth import CurrentUser
from src.domains.submission import SubmissionService
from src.infrastructure.storage import (
    FileStorage,
    StorageError,
    UploadTooLargeError,
    submission_upload_path,
)
from src.models.submission import (
    GradeRequest,
    SubmissionListResponse,
    SubmissionResponse,
    SubmitRequest,
    SubmitResult,
    UploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> SubmissionService:
    """Get submission service instance.

    Args:
        db: Database session.

    Returns:
        Configured SubmissionService instance.
    """
    return SubmissionService(db=db)


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmitResult,
    summary="Submit assignment",
    description=(
        "Submit work for an assignment. Resubmitting replaces the content; a graded "
        "submission keeps its grade."
    ),
)
async def submit_assignment(
    assignment_id: str,
    data: SubmitRequest,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> SubmitResult:
    """Submit or resubmit work.

    Args:
        assignment_id: Assignment identifier.
        data: Submission content and format.
        current_user: Authenticated student.
        db: Database session.

    Returns:
        Stored status and whether the submission is new.
    """
    return await _get_service(db).submit(
        current_user.to_context(),
        assignment_id,
        content=data.content,
        submission_format=data.submission_format,
        original_file_name=data.original_file_name,
    )


@router.post(
    "/assignments/{assignment_id}/uploads",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload submission file",
    description="Store a file and return the URI to submit with the file_upload format.",
)
async def upload_submission_file(
    assignment_id: str,
    file: UploadFile = File(...),
    storage: FileStorage = Depends(get_file_storage),
    current_user: CurrentUser = Depends(require_student),
) -> UploadResponse:
    """Upload a submission file.

    Args:
        assignment_id: Assignment identifier.
        storage: File storage backend.
        file: Uploaded file.
        current_user: Authenticated student.

    Returns:
        Storage URI and size.

    Raises:
        HTTPException: If the file is too large or cannot be stored.
    """
    data = await file.read()
    file_name = file.filename or "upload"
    path = submission_upload_path(current_user.school_id, assignment_id, current_user.id, file_name)

    try:
        uri = await storage.upload(data, path)
    except UploadTooLargeError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(e),
        )
    except StorageError as e:
        logger.error("Upload failed for assignment %s: %s", assignment_id, str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="File storage unavailable",
        )

    return UploadResponse(uri=uri, original_file_name=file_name, size=len(data))


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionListResponse,
    summary="List submissions",
)
async def list_submissions(
    assignment_id: str,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> SubmissionListResponse:
    """List submissions for an assignment with student names.

    Args:
        assignment_id: Assignment identifier.
        current_user: Authenticated teacher or admin.
        db: Database session.

    Returns:
        Submissions, most recent first.
    """
    items = await _get_service(db).list_for_assignment(current_user.to_context(), assignment_id)
    return SubmissionListResponse(assignment_id=assignment_id, items=items, total=len(items))


@router.get(
    "/assignments/{assignment_id}/submissions/mine",
    response_model=SubmissionResponse,
    summary="Get own submission",
)
async def get_my_submission(
    assignment_id: str,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> SubmissionResponse:
    """Get the caller's submission for an assignment.

    Args:
        assignment_id: Assignment identifier.
        current_user: Authenticated student.
        db: Database session.

    Returns:
        The submission.

    Raises:
        HTTPException: If the student has not submitted.
    """
    submission = await _get_service(db).get_for_student(
        current_user.to_context(), assignment_id, current_user.id
    )
    if submission is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No submission for this assignment",
        )
    return submission


@router.post(
    "/submissions/{submission_id}/grade",
    response_model=SubmissionResponse,
    summary="Grade submission",
)
async def grade_submission(
    submission_id: str,
    data: GradeRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> SubmissionResponse:
    """Grade a submission.

    Args:
        submission_id: Submission identifier.
        data: Grade and feedback.
        current_user: Authenticated teacher or admin.
        db: Database session.

    Returns:
        The graded submission.
    """
    return await _get_service(db).grade(
        current_user.to_context(), submission_id, data.grade, data.feedback
    )
