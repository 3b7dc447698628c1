"""Rule diffing — decide which rules are missing or extra and what to keep.

Two policies are supported:

- union (``remove_extra=False``): append missing rules, keep everything else
- strict (``remove_extra=True``): replace the rule set with the expected one
  whenever anything is missing or extra
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rolesync.rbac.coverage import CoversFunc, covers as default_covers
from rolesync.rbac.models import PolicyRule


@dataclass
class RuleDiff:
    """Outcome of comparing an existing rule set against an expected one."""

    missing: list[PolicyRule] = field(default_factory=list)
    extra: list[PolicyRule] = field(default_factory=list)
    rules: list[PolicyRule] = field(default_factory=list)
    changed: bool = False


def compute_rule_diff(
    existing_rules: list[PolicyRule],
    expected_rules: list[PolicyRule],
    remove_extra: bool,
    covers: CoversFunc = default_covers,
) -> RuleDiff:
    """Compare rule sets and compute the rules the role should end up with.

    Args:
        existing_rules: Rules currently persisted on the role.
        expected_rules: Rules the role is desired to grant.
        remove_extra: Strict policy when True, union policy when False.
        covers: Coverage comparator, ``(owner, requested) -> (ok, uncovered)``.
    """
    _, extra = covers(expected_rules, existing_rules)
    _, missing = covers(existing_rules, expected_rules)

    diff = RuleDiff(missing=list(missing), extra=list(extra))

    if not remove_extra and missing:
        diff.rules = [r.copy() for r in existing_rules] + [r.copy() for r in missing]
        diff.changed = True
    elif remove_extra and (missing or extra):
        diff.rules = [r.copy() for r in expected_rules]
        diff.changed = True
    else:
        diff.rules = [r.copy() for r in existing_rules]

    return diff
