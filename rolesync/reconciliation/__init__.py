"""Role reconciliation — converge a persisted role toward its desired state.

This package provides:
- Map merging for annotations and labels, preserving unset vs. empty
- Rule diffing under the union and strict policies
- The reconcile engine: fetch, diff, short-circuit, write, retry lost races
- A caller-level wrapper that retries optimistic-lock conflicts
"""

from rolesync.reconciliation.engine import compute_reconciled_role, reconcile_role
from rolesync.reconciliation.merge import merge_maps
from rolesync.reconciliation.models import (
    ReconcileOperation,
    ReconcileResult,
    ReconcileRoleOptions,
)
from rolesync.reconciliation.retry import retry_on_conflict
from rolesync.reconciliation.rules import RuleDiff, compute_rule_diff

__all__ = [
    "ReconcileOperation",
    "ReconcileResult",
    "ReconcileRoleOptions",
    "RuleDiff",
    "compute_reconciled_role",
    "compute_rule_diff",
    "merge_maps",
    "reconcile_role",
    "retry_on_conflict",
]
