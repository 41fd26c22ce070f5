"""Shared error classes for workspace, swipe, and match services."""

from __future__ import annotations


class SwipeServiceError(RuntimeError):
    """Base exception raised by the swipe/match services."""

    def __init__(self, message: str, code: str = "SWIPE_SERVICE_ERROR") -> None:
        super().__init__(message)
        self.code = code


class NotFoundError(SwipeServiceError):
    """Raised when a referenced workspace, fundraise, swipe, or match does not exist."""


class WorkspaceConflictError(SwipeServiceError):
    """Raised when workspace membership rules are violated."""


class ReflectionNotAllowedError(SwipeServiceError):
    """Raised when a reflection targets a swipe that is not a like."""


class SwipePersistenceError(SwipeServiceError):
    """Raised when the repository fails to save or retrieve state."""
