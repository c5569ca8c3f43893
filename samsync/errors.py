"""Exceptions raised by the synchronisation primitives."""

from __future__ import annotations

__all__ = ["SamError", "OperationAborted", "DeadlockError", "is_aborted"]


class SamError(Exception):
    """Base class for every error reported by the primitives.

    ``operation`` names the call that failed, such as ``"lock"``.
    """

    default_message = "synchronisation error"

    def __init__(self, message: str | None = None, *, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(message if message is not None else self.default_message)


class OperationAborted(SamError):
    """A pending operation was cancelled or its primitive went away."""

    default_message = "operation aborted"


class DeadlockError(SamError):
    """A synchronous wait could never be satisfied without deadlocking."""

    default_message = "resource deadlock would occur"


def is_aborted(error: BaseException | None) -> bool:
    """Return True if ``error`` reports an aborted operation."""
    return isinstance(error, OperationAborted)