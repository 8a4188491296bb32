# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam period scope resolution.

Turns an exam period's scope into the concrete list of class ids that sit
it. Resolution is a pure function of the scope inputs and the school's
classes, so the same inputs always give the same list.

Rules:
- specific_classes: the requested ids, which must be non-empty and all
  belong to the school.
- form_grade: main classes whose name starts with the grade label,
  ignoring case and the label's surrounding whitespace. Must match at
  least one class.
- entire_school: every main class. May be empty.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol

from src.domains.common import ValidationFailureError
from src.infrastructure.database.models.tenant.exam import ExamScope
from src.infrastructure.database.models.tenant.school import ClassType


class ScopeResolutionError(ValidationFailureError):
    """Raised when a scope does not resolve to a valid class set."""

    pass


class ClassLike(Protocol):
    """Fields of a class the resolver reads."""

    id: str
    name: str
    class_type: str


def _is_main(class_: ClassLike) -> bool:
    return class_.class_type == ClassType.MAIN.value


def resolve_scope(
    scope: ExamScope | str,
    classes: Sequence[ClassLike],
    grade_label: str | None = None,
    class_ids: Iterable[str] | None = None,
) -> list[str]:
    """Resolve an exam scope to class ids.

    Args:
        scope: The exam scope.
        classes: All classes of the school.
        grade_label: Name prefix for form_grade scope.
        class_ids: Requested ids for specific_classes scope.

    Returns:
        Class ids in the order of `classes` (or of `class_ids` for
        specific_classes), without duplicates.

    Raises:
        ScopeResolutionError: If the scope is unknown or resolves to an
            invalid set.
    """
    try:
        scope = ExamScope(scope)
    except ValueError as e:
        raise ScopeResolutionError(f"Unknown exam scope: {scope}") from e

    if scope is ExamScope.SPECIFIC_CLASSES:
        requested = list(dict.fromkeys(class_ids or []))
        if not requested:
            raise ScopeResolutionError("specific_classes scope requires at least one class")
        known = {c.id for c in classes}
        unknown = [cid for cid in requested if cid not in known]
        if unknown:
            raise ScopeResolutionError(f"Unknown classes for this school: {', '.join(unknown)}")
        return requested

    if scope is ExamScope.FORM_GRADE:
        label = (grade_label or "").strip().lower()
        if not label:
            raise ScopeResolutionError("form_grade scope requires a grade label")
        matched = [c.id for c in classes if _is_main(c) and c.name.lower().startswith(label)]
        if not matched:
            raise ScopeResolutionError(f"No main classes match grade label '{grade_label}'")
        return matched

    return [c.id for c in classes if _is_main(c)]
