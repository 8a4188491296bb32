# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy shared by the domain services.

Each service declares its own ``XServiceError`` hierarchy; every concrete
error also derives from one of the categories below so the API layer can
map it to an HTTP status without knowing the service.

- NotFoundError: the referenced entity does not exist (404).
- UnauthorizedError: the actor may not perform the operation (403).
- ValidationFailureError: the request is malformed; raised before any write (422).
- StoreUnavailableError: the database rejected or failed the unit of work;
  it was rolled back and may be retried (503).
"""


class DomainError(Exception):
    """Base class for all domain service errors."""

    pass


class NotFoundError(DomainError):
    """Referenced entity does not exist."""

    pass


class UnauthorizedError(DomainError):
    """Actor is not allowed to perform the operation."""

    pass


class ValidationFailureError(DomainError):
    """Request failed validation."""

    pass


class StoreUnavailableError(DomainError):
    """The unit of work could not be committed.

    Attributes:
        operation: Name of the operation that failed.
        original_error: The underlying database exception.
    """

    def __init__(self, operation: str, original_error: Exception | None = None) -> None:
        """Initialize the error.

        Args:
            operation: Name of the operation that failed.
            original_error: The underlying database exception.
        """
        super().__init__(f"Could not complete {operation}")
        self.operation = operation
        self.original_error = original_error
