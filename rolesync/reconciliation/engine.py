"""Reconcile engine — converge one persisted role toward a desired role.

Each attempt fetches the role, computes the result, and (when confirmed and
not protected) writes it. An attempt that loses a race with another actor
creating or deleting the same role is retried from the fetch, up to
``MAX_RECONCILE_ATTEMPTS`` attempts in total. Update conflicts on a stale
resource version are not retried here; see ``retry_on_conflict``.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from rolesync.config import MAX_RECONCILE_ATTEMPTS
from rolesync.errors import (
    AlreadyExistsError,
    InvalidOperationError,
    MaxAttemptsExceededError,
    NotFoundError,
)
from rolesync.rbac.coverage import CoversFunc, covers as default_covers
from rolesync.rbac.models import Role
from rolesync.reconciliation.merge import maps_equal, merge_maps
from rolesync.reconciliation.models import (
    ReconcileOperation,
    ReconcileResult,
    ReconcileRoleOptions,
)
from rolesync.reconciliation.rules import compute_rule_diff

logger = logging.getLogger(__name__)


class _RaceLost(Exception):
    """The role was created or deleted between our read and our write."""


def reconcile_role(options: ReconcileRoleOptions) -> ReconcileResult:
    """Reconcile ``options.role`` against the store.

    Raises:
        MaxAttemptsExceededError: every attempt lost a create/delete race.
        InvalidOperationError: the computed operation cannot be executed.
        StoreError: any other store failure, propagated unchanged.
    """
    name = options.role.name
    for attempt in range(MAX_RECONCILE_ATTEMPTS):
        try:
            return _attempt(options, attempt)
        except _RaceLost as e:
            logger.warning(f"Role {name}: {e}, retrying (attempt {attempt + 1}/{MAX_RECONCILE_ATTEMPTS})")
    raise MaxAttemptsExceededError(name, MAX_RECONCILE_ATTEMPTS)


def _attempt(options: ReconcileRoleOptions, attempt: int) -> ReconcileResult:
    expected = options.role
    client = options.client

    try:
        existing = client.get(expected.name)
    except NotFoundError:
        result = ReconcileResult(
            role=expected.clone(),
            missing_rules=[r.copy() for r in expected.rules],
            operation=ReconcileOperation.CREATE,
        )
    else:
        result = compute_reconciled_role(
            existing, expected, options.remove_extra_permissions, options.covers
        )

    logger.debug(f"Role {expected.name}: attempt {attempt}, operation {result.operation.value}")

    if result.protected:
        if result.operation != ReconcileOperation.NONE:
            logger.warning(
                f"Role {expected.name} is protected from reconciliation; "
                f"skipping {result.operation.value}"
            )
        return result
    if not options.confirm:
        return result

    if result.operation == ReconcileOperation.CREATE:
        try:
            created = client.create(result.role)
        except AlreadyExistsError as e:
            raise _RaceLost("created concurrently") from e
        logger.info(f"Created role {created.name} ({len(result.missing_rules)} rules)")
        return replace(result, role=created)

    if result.operation == ReconcileOperation.UPDATE:
        try:
            updated = client.update(result.role)
        except NotFoundError as e:
            raise _RaceLost("deleted concurrently") from e
        logger.info(
            f"Updated role {updated.name} "
            f"(+{len(result.missing_rules)} missing, {len(result.extra_rules)} extra)"
        )
        return replace(result, role=updated)

    if result.operation == ReconcileOperation.NONE:
        return result

    raise InvalidOperationError(result.operation.value)


def compute_reconciled_role(
    existing: Role,
    expected: Role,
    remove_extra_permissions: bool,
    covers: CoversFunc = default_covers,
) -> ReconcileResult:
    """Compute the role to write so ``existing`` grants what ``expected`` grants.

    Annotations and labels from ``expected`` fill gaps in ``existing``;
    existing values win on conflict. ``existing`` is never modified.
    """
    operation = ReconcileOperation.NONE
    role = existing.clone()

    role.annotations = merge_maps(expected.annotations, role.annotations)
    if not maps_equal(role.annotations, existing.annotations):
        operation = ReconcileOperation.UPDATE

    role.labels = merge_maps(expected.labels, role.labels)
    if not maps_equal(role.labels, existing.labels):
        operation = ReconcileOperation.UPDATE

    diff = compute_rule_diff(existing.rules, expected.rules, remove_extra_permissions, covers)
    if diff.changed:
        role.rules = diff.rules
        operation = ReconcileOperation.UPDATE

    return ReconcileResult(
        role=role,
        missing_rules=diff.missing,
        extra_rules=diff.extra,
        operation=operation,
        protected=existing.protected,
    )
