"""Exception hierarchy for rolesync.

Store errors signal what happened to a named role in the backing store.
The reconcile engine treats two of them as lost races (``AlreadyExistsError``
on create, ``NotFoundError`` on update) and propagates everything else.
"""

from __future__ import annotations


class RoleSyncError(Exception):
    """Base class for every error raised by rolesync."""


# ── Store ────────────────────────────────────────────────────────────


class StoreError(RoleSyncError):
    """A role store operation failed."""

    def __init__(self, name: str, message: str = ""):
        self.name = name
        super().__init__(message or f"store error for role '{name}'")


class NotFoundError(StoreError):
    def __init__(self, name: str):
        super().__init__(name, f"role '{name}' not found")


class AlreadyExistsError(StoreError):
    def __init__(self, name: str):
        super().__init__(name, f"role '{name}' already exists")


class ConflictError(StoreError):
    """The submitted role was built from a stale resource version."""

    def __init__(self, name: str, expected: str = "", actual: str = ""):
        self.expected = expected
        self.actual = actual
        super().__init__(
            name,
            f"conflict updating role '{name}': "
            f"resource version {expected!r} does not match stored {actual!r}",
        )


# ── Reconcile ────────────────────────────────────────────────────────


class ReconcileError(RoleSyncError):
    """The reconcile engine could not converge a role."""


class MaxAttemptsExceededError(ReconcileError):
    def __init__(self, name: str, attempts: int):
        self.name = name
        self.attempts = attempts
        super().__init__(f"exceeded maximum attempts reconciling role '{name}' ({attempts})")


class InvalidOperationError(ReconcileError):
    def __init__(self, operation: object):
        self.operation = operation
        super().__init__(f"invalid operation: {operation}")


# ── Input ────────────────────────────────────────────────────────────


class RoleFormatError(RoleSyncError, ValueError):
    """A role document could not be parsed."""
