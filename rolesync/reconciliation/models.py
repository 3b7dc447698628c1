"""Reconciliation data models — options in, results out."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from rolesync.rbac.coverage import CoversFunc, covers
from rolesync.rbac.models import PolicyRule, Role
from rolesync.store.base import RoleClient


class ReconcileOperation(str, Enum):
    """The store operation needed to converge a role."""

    CREATE = "create"
    UPDATE = "update"
    RECREATE = "recreate"  # Reserved; nothing produces it
    NONE = "none"


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of reconciling one role.

    ``operation`` is the write required to converge. It was performed only
    when the run was confirmed and the role is not ``protected``; in that
    case ``role`` is the object returned by the store.
    """

    role: Role
    missing_rules: list[PolicyRule] = field(default_factory=list)
    extra_rules: list[PolicyRule] = field(default_factory=list)
    operation: ReconcileOperation = ReconcileOperation.NONE
    protected: bool = False

    @property
    def needs_write(self) -> bool:
        return self.operation != ReconcileOperation.NONE and not self.protected

    def summary(self) -> str:
        if self.protected:
            return f"{self.role.name}: protected, skipped ({self.operation.value} needed)"
        if self.operation == ReconcileOperation.NONE:
            return f"{self.role.name}: up to date"
        return (
            f"{self.role.name}: {self.operation.value} "
            f"(+{len(self.missing_rules)} missing, {len(self.extra_rules)} extra)"
        )


@dataclass
class ReconcileRoleOptions:
    """Inputs for reconciling a single role."""

    role: Role  # Desired state
    client: RoleClient
    confirm: bool = False  # False is a dry run
    remove_extra_permissions: bool = False
    covers: CoversFunc = covers

    def run(self) -> ReconcileResult:
        from rolesync.reconciliation.engine import reconcile_role

        return reconcile_role(self)
