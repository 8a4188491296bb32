# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- A throwaway SQLite database with the full schema
- A seeded school (admin, teachers, students, a parent, subjects)
- A recording dispatcher and a controllable clock
"""

import asyncio
from collections.abc import AsyncGenerator, Generator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.domains.common import RequestContext
from src.infrastructure.database.connection import create_sessionmaker
from src.infrastructure.database.models import Base, new_id
from src.infrastructure.database.models.tenant import (
    Class,
    ClassType,
    School,
    Subject,
    User,
    UserRole,
    UserStatus,
)
from src.infrastructure.events import TransitionEvent


# =============================================================================
# Event Loop Configuration
# =============================================================================


@pytest.fixture(scope="session")
def event_loop() -> Generator[asyncio.AbstractEventLoop, None, None]:
    """Create an event loop for the test session.

    This fixture provides a single event loop for all async tests
    in the session, improving performance.
    """
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a SQLite database file with every table."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'schoolops.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessionmaker configured like the application's."""
    return create_sessionmaker(engine)


@pytest_asyncio.fixture
async def db(sessionmaker: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """Session used by the services under test."""
    async with sessionmaker() as session:
        yield session


# =============================================================================
# Helper Fixtures
# =============================================================================


class RecordingDispatcher:
    """Dispatcher stand-in that keeps the events it is given."""

    def __init__(self) -> None:
        self.events: list[TransitionEvent] = []

    def dispatch(self, event: TransitionEvent) -> None:
        self.events.append(event)

    def of_type(self, event_class: type) -> list[TransitionEvent]:
        return [e for e in self.events if isinstance(e, event_class)]


class FixedClock:
    """Callable clock whose time tests move explicitly."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    """Provide a recording dispatcher."""
    return RecordingDispatcher()


@pytest.fixture
def clock() -> FixedClock:
    """Provide a clock pinned to 2024-03-01 12:00 UTC."""
    return FixedClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@dataclass
class SeededSchool:
    """Rows created by the seeded_school fixture."""

    school_id: str
    admin: User
    teacher: User
    other_teacher: User
    students: list[User]
    parent: User
    math_id: str
    english_id: str
    science_id: str
    form_1a: Class
    form_1b: Class
    form_2a: Class
    chemistry: Class

    def ctx(self, user: User) -> RequestContext:
        """Build the request context of a seeded user."""
        return RequestContext(
            user_id=user.id,
            role=user.role,
            school_id=user.school_id,
            display_name=user.display_name,
            email=user.email,
        )


def make_user(school_id: str, name: str, role: UserRole, **kwargs) -> User:
    """Build an active user."""
    return User(
        id=new_id(),
        school_id=school_id,
        display_name=name,
        email=f"{name.lower().replace(' ', '.')}@example.com",
        role=role.value,
        status=UserStatus.ACTIVE.value,
        class_ids=[],
        subject_ids=[],
        **kwargs,
    )


def make_class(school_id: str, name: str, teacher_id: str | None, **kwargs) -> Class:
    """Build a class with an empty roster."""
    return Class(
        id=new_id(),
        school_id=school_id,
        name=name,
        teacher_id=teacher_id,
        invite_code=f"C-{new_id()[:6].upper()}",
        student_ids=[],
        **kwargs,
    )


@pytest_asyncio.fixture
async def seeded_school(db: AsyncSession) -> SeededSchool:
    """Seed one school with staff, students, subjects and classes."""
    school = School(id=new_id(), name="Green Hills Academy")
    db.add(school)
    school_id = school.id

    math = Subject(id=new_id(), school_id=school_id, name="Mathematics")
    english = Subject(id=new_id(), school_id=school_id, name="English")
    science = Subject(id=new_id(), school_id=school_id, name="Science")

    admin = make_user(school_id, "Grace Admin", UserRole.ADMIN)
    teacher = make_user(school_id, "Ms Achieng", UserRole.TEACHER)
    other_teacher = make_user(school_id, "Mr Otieno", UserRole.TEACHER)
    students = [
        make_user(school_id, "Amani Student", UserRole.STUDENT),
        make_user(school_id, "Baraka Student", UserRole.STUDENT),
        make_user(school_id, "Chausiku Student", UserRole.STUDENT),
    ]
    parent = make_user(
        school_id, "Amani Parent", UserRole.PARENT, child_student_id=students[0].id
    )

    form_1a = make_class(
        school_id,
        "Form 1A",
        teacher.id,
        class_type=ClassType.MAIN.value,
        compulsory_subject_ids=[math.id, english.id],
    )
    form_1b = make_class(
        school_id,
        "form 1B",
        teacher.id,
        class_type=ClassType.MAIN.value,
        compulsory_subject_ids=[math.id],
    )
    form_2a = make_class(
        school_id,
        "Form 2A",
        other_teacher.id,
        class_type=ClassType.MAIN.value,
        compulsory_subject_ids=[english.id],
    )
    chemistry = make_class(
        school_id,
        "Form 1 Chemistry",
        other_teacher.id,
        class_type=ClassType.SUBJECT_BASED.value,
        compulsory_subject_ids=[],
        subject_id=science.id,
    )

    db.add_all(
        [math, english, science, admin, teacher, other_teacher, *students, parent,
         form_1a, form_1b, form_2a, chemistry]
    )
    await db.commit()

    return SeededSchool(
        school_id=school_id,
        admin=admin,
        teacher=teacher,
        other_teacher=other_teacher,
        students=students,
        parent=parent,
        math_id=math.id,
        english_id=english.id,
        science_id=science.id,
        form_1a=form_1a,
        form_1b=form_1b,
        form_2a=form_2a,
        chemistry=chemistry,
    )
