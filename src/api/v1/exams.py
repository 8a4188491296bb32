# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam period API endpoints.

- POST / - Create an exam period (admin)
- GET / - List the school's exam periods
- GET /{period_id} - Get exam period details
- PATCH /{period_id} - Update an upcoming exam period (admin)
- POST /{period_id}/status - Change status (admin)
- PUT /{period_id}/results - Record a result (teacher or admin)
- GET /{period_id}/results - List results
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_admin, require_auth, require_teacher_or_admin
from src.api.middleware.auth import CurrentUser
from src.domains.exam import ExamService
from src.models.exam import (
    ExamPeriodCreateRequest,
    ExamPeriodListResponse,
    ExamPeriodResponse,
    ExamPeriodUpdateRequest,
    ExamResultListResponse,
    ExamResultRequest,
    ExamResultResponse,
    ExamStatusChangeRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ExamService:
    """Get exam service instance."""
    return ExamService(db=db)


@router.post(
    "",
    response_model=ExamPeriodResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create exam period",
    description="Create an exam period; its scope is resolved to classes immediately.",
)
async def create_exam_period(
    data: ExamPeriodCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ExamPeriodResponse:
    """Create an exam period."""
    logger.info("Creating exam period '%s' scope=%s", data.name, data.scope.value)
    return await _get_service(db).create(current_user.to_context(), data)


@router.get(
    "",
    response_model=ExamPeriodListResponse,
    summary="List exam periods",
)
async def list_exam_periods(
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ExamPeriodListResponse:
    """List the caller's school's exam periods."""
    items = await _get_service(db).list_by_school(current_user.school_id)
    return ExamPeriodListResponse(items=items, total=len(items))


@router.get(
    "/{period_id}",
    response_model=ExamPeriodResponse,
    summary="Get exam period",
)
async def get_exam_period(
    period_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ExamPeriodResponse:
    """Get exam period details."""
    return await _get_service(db).get(current_user.to_context(), period_id)


@router.patch(
    "/{period_id}",
    response_model=ExamPeriodResponse,
    summary="Update exam period",
    description="Only upcoming exam periods can be edited.",
)
async def update_exam_period(
    period_id: str,
    data: ExamPeriodUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ExamPeriodResponse:
    """Update an exam period."""
    return await _get_service(db).update(current_user.to_context(), period_id, data)


@router.post(
    "/{period_id}/status",
    response_model=ExamPeriodResponse,
    summary="Change exam period status",
    description="Completing an exam period locks its results and notifies students.",
)
async def change_exam_status(
    period_id: str,
    data: ExamStatusChangeRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ExamPeriodResponse:
    """Change exam period status."""
    return await _get_service(db).change_status(
        current_user.to_context(), period_id, data.status
    )


@router.put(
    "/{period_id}/results",
    response_model=ExamResultResponse,
    summary="Record exam result",
)
async def record_exam_result(
    period_id: str,
    data: ExamResultRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> ExamResultResponse:
    """Record or overwrite a student's marks."""
    return await _get_service(db).record_result(current_user.to_context(), period_id, data)


@router.get(
    "/{period_id}/results",
    response_model=ExamResultListResponse,
    summary="List exam results",
    description="Students only see their own results.",
)
async def list_exam_results(
    period_id: str,
    class_id: Annotated[str | None, Query(description="Filter by class")] = None,
    subject_id: Annotated[str | None, Query(description="Filter by subject")] = None,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ExamResultListResponse:
    """List results of an exam period."""
    items = await _get_service(db).list_results(
        current_user.to_context(), period_id, class_id, subject_id
    )
    return ExamResultListResponse(exam_period_id=period_id, items=items, total=len(items))
