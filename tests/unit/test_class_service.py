# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Class service."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from src.domains.class_.service import (
    INVITE_CODE_PREFIX,
    ClassNotFoundError,
    ClassService,
    InvalidClassTypeError,
    InvalidTeacherError,
    generate_invite_code,
)
from src.domains.common import RequestContext, UnauthorizedError
from src.infrastructure.database.models.tenant import (
    Assignment,
    ClassType,
    LearningMaterial,
    Submission,
)
from src.infrastructure.events import ClassCreated, ClassDeleted, InviteCodeRegenerated
from src.models.class_ import ClassCreateRequest, ClassUpdateRequest


@pytest.fixture
def class_service(db, dispatcher):
    """Create class service with a recording dispatcher."""
    return ClassService(db=db, dispatcher=dispatcher)


class TestInviteCode:
    """Tests for invite code generation."""

    def test_format(self):
        code = generate_invite_code()

        assert code.startswith(INVITE_CODE_PREFIX)
        assert len(code) == len(INVITE_CODE_PREFIX) + 6
        assert code == code.upper()


class TestClassServiceCreate:
    """Tests for class creation."""

    @pytest.mark.asyncio
    async def test_create_main_class(self, class_service, seeded_school, dispatcher):
        """Test creating a main class dedupes compulsory subjects."""
        school = seeded_school
        request = ClassCreateRequest(
            name="  Form 3A ",
            teacher_id=school.teacher.id,
            compulsory_subject_ids=[school.math_id, school.math_id, school.english_id],
            subject_id=school.science_id,
        )

        result = await class_service.create_class(school.ctx(school.admin), request)

        assert result.name == "Form 3A"
        assert result.class_type == ClassType.MAIN
        assert result.compulsory_subject_ids == [school.math_id, school.english_id]
        assert result.subject_id is None
        assert result.student_ids == []
        assert result.invite_code.startswith(INVITE_CODE_PREFIX)
        assert dispatcher.of_type(ClassCreated)[0].class_id == result.id

    @pytest.mark.asyncio
    async def test_create_subject_based_requires_subject(self, class_service, seeded_school):
        """Test that a subject-based class without a subject is rejected."""
        school = seeded_school
        request = ClassCreateRequest(name="Physics", class_type=ClassType.SUBJECT_BASED)

        with pytest.raises(InvalidClassTypeError):
            await class_service.create_class(school.ctx(school.admin), request)

    @pytest.mark.asyncio
    async def test_create_subject_based_clears_compulsory(self, class_service, seeded_school):
        """Test that compulsory subjects are dropped for subject-based classes."""
        school = seeded_school
        request = ClassCreateRequest(
            name="Physics",
            class_type=ClassType.SUBJECT_BASED,
            subject_id=school.science_id,
            compulsory_subject_ids=[school.math_id],
        )

        result = await class_service.create_class(school.ctx(school.admin), request)

        assert result.subject_id == school.science_id
        assert result.compulsory_subject_ids == []

    @pytest.mark.asyncio
    async def test_create_requires_admin(self, class_service, seeded_school):
        """Test that teachers cannot create classes."""
        school = seeded_school

        with pytest.raises(UnauthorizedError):
            await class_service.create_class(
                school.ctx(school.teacher), ClassCreateRequest(name="Form 3B")
            )

    @pytest.mark.asyncio
    async def test_create_with_student_as_teacher(self, class_service, seeded_school):
        """Test that the owning teacher must be staff."""
        school = seeded_school
        request = ClassCreateRequest(name="Form 3C", teacher_id=school.students[0].id)

        with pytest.raises(InvalidTeacherError):
            await class_service.create_class(school.ctx(school.admin), request)


class TestClassServiceUpdate:
    """Tests for class updates."""

    @pytest.mark.asyncio
    async def test_switch_to_subject_based(self, class_service, seeded_school):
        """Test that switching type clears the compulsory subjects."""
        school = seeded_school

        result = await class_service.update_class(
            school.ctx(school.admin),
            school.form_1a.id,
            ClassUpdateRequest(class_type=ClassType.SUBJECT_BASED, subject_id=school.math_id),
        )

        assert result.class_type == ClassType.SUBJECT_BASED
        assert result.subject_id == school.math_id
        assert result.compulsory_subject_ids == []

    @pytest.mark.asyncio
    async def test_switch_to_main_clears_subject(self, class_service, seeded_school):
        """Test that a subject-based class turned main loses its subject."""
        school = seeded_school

        result = await class_service.update_class(
            school.ctx(school.admin),
            school.chemistry.id,
            ClassUpdateRequest(class_type=ClassType.MAIN),
        )

        assert result.class_type == ClassType.MAIN
        assert result.subject_id is None

    @pytest.mark.asyncio
    async def test_invalid_switch_leaves_class_unchanged(self, class_service, seeded_school):
        """Test that a rejected update does not modify the class."""
        school = seeded_school
        ctx = school.ctx(school.admin)
        class_id = school.form_1a.id

        with pytest.raises(InvalidClassTypeError):
            await class_service.update_class(
                ctx, class_id, ClassUpdateRequest(class_type=ClassType.SUBJECT_BASED)
            )

        current = await class_service.get_class(ctx, class_id)
        assert current.class_type == ClassType.MAIN
        assert current.compulsory_subject_ids == [school.math_id, school.english_id]

    @pytest.mark.asyncio
    async def test_rename_keeps_other_fields(self, class_service, seeded_school):
        """Test that unset fields are left alone."""
        school = seeded_school

        result = await class_service.update_class(
            school.ctx(school.admin), school.form_1a.id, ClassUpdateRequest(name="Form 1 Alpha")
        )

        assert result.name == "Form 1 Alpha"
        assert result.teacher_id == school.teacher.id
        assert result.invite_code == school.form_1a.invite_code

    @pytest.mark.asyncio
    async def test_update_unknown_class(self, class_service, seeded_school):
        """Test updating a missing class."""
        school = seeded_school

        with pytest.raises(ClassNotFoundError):
            await class_service.update_class(
                school.ctx(school.admin), "missing", ClassUpdateRequest(name="X")
            )


class TestClassServiceDelete:
    """Tests for cascading deletion."""

    @pytest.mark.asyncio
    async def test_delete_cascades(self, class_service, seeded_school, db, dispatcher):
        """Test that deleting a class removes its coursework and memberships."""
        school = seeded_school
        class_ = school.form_1a
        student = school.students[0]
        class_.student_ids = [student.id]
        student.class_ids = [class_.id, school.chemistry.id]
        student.subject_ids = [school.math_id, school.english_id, school.science_id]

        assignment = Assignment(
            id="assignment-1",
            school_id=school.school_id,
            class_id=class_.id,
            teacher_id=school.teacher.id,
            title="Essay",
            deadline=datetime(2024, 3, 1, 23, 59, tzinfo=timezone.utc),
            allowed_formats=["text_entry"],
            total_submissions=1,
        )
        submission = Submission(
            id="submission-1",
            school_id=school.school_id,
            assignment_id=assignment.id,
            class_id=class_.id,
            student_id=student.id,
            submitted_at=datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc),
            content="My essay",
            submission_format="text_entry",
            status="submitted",
        )
        material = LearningMaterial(
            id="material-1",
            school_id=school.school_id,
            class_id=class_.id,
            teacher_id=school.teacher.id,
            title="Reading list",
        )
        db.add_all([assignment, submission, material])
        await db.commit()

        result = await class_service.delete_class(school.ctx(school.admin), class_.id)

        assert result.deleted_assignments == 1
        assert result.deleted_submissions == 1
        assert result.deleted_materials == 1
        assert result.removed_student_ids == [student.id]
        assert student.class_ids == [school.chemistry.id]
        assert student.subject_ids == [school.math_id, school.english_id, school.science_id]

        assert (await db.execute(select(Assignment))).scalars().all() == []
        assert (await db.execute(select(Submission))).scalars().all() == []
        assert (await db.execute(select(LearningMaterial))).scalars().all() == []
        with pytest.raises(ClassNotFoundError):
            await class_service.get_class(school.ctx(school.admin), class_.id)

        event = dispatcher.of_type(ClassDeleted)[0]
        assert event.removed_student_ids == (student.id,)

    @pytest.mark.asyncio
    async def test_delete_leaves_other_classes(self, class_service, seeded_school):
        """Test that other classes survive the delete."""
        school = seeded_school
        ctx = school.ctx(school.admin)

        await class_service.delete_class(ctx, school.form_2a.id)
        remaining = await class_service.list_by_school(school.school_id)

        assert school.form_2a.id not in {c.id for c in remaining}
        assert len(remaining) == 3


class TestClassServiceQueries:
    """Tests for invite code regeneration and listings."""

    @pytest.mark.asyncio
    async def test_regenerate_invite_code(self, class_service, seeded_school, dispatcher):
        """Test that the invite code is replaced."""
        school = seeded_school
        old_code = school.form_1a.invite_code

        result = await class_service.regenerate_invite_code(
            school.ctx(school.admin), school.form_1a.id
        )

        assert result.invite_code != old_code
        assert result.invite_code.startswith(INVITE_CODE_PREFIX)
        assert dispatcher.of_type(InviteCodeRegenerated)[0].invite_code == result.invite_code

    @pytest.mark.asyncio
    async def test_list_by_teacher(self, class_service, seeded_school):
        """Test listing the classes a teacher owns."""
        school = seeded_school

        result = await class_service.list_by_teacher(school.school_id, school.teacher.id)

        assert {c.id for c in result} == {school.form_1a.id, school.form_1b.id}

    @pytest.mark.asyncio
    async def test_get_class_of_other_school(self, class_service, seeded_school):
        """Test that classes are invisible across schools."""
        school = seeded_school
        foreign_ctx = RequestContext(
            user_id=school.admin.id, role=school.admin.role, school_id="other-school"
        )

        with pytest.raises(ClassNotFoundError):
            await class_service.get_class(foreign_ctx, school.form_1a.id)
