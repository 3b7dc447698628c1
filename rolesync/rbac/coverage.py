"""Rule coverage — decide whether one rule set already grants another.

Requested rules are broken down into atomic grants (a single verb on a
single group/resource/name, or a single verb on a single non-resource URL)
and each atomic grant must be matched by at least one owner rule.
"""

from __future__ import annotations

from typing import Callable, Iterable

from rolesync.rbac.models import PolicyRule

ALL = "*"

# (owner_rules, requested_rules) -> (fully_covered, uncovered_atomic_rules)
CoversFunc = Callable[[list[PolicyRule], list[PolicyRule]], tuple[bool, list[PolicyRule]]]


def covers(
    owner_rules: list[PolicyRule], requested_rules: list[PolicyRule]
) -> tuple[bool, list[PolicyRule]]:
    """Check whether ``owner_rules`` grant everything ``requested_rules`` grant.

    Returns
    -------
    tuple[bool, list[PolicyRule]]
        Whether every requested grant is covered, and the atomic rules that
        are not, in breakdown order.
    """
    uncovered = [
        sub
        for requested in requested_rules
        for sub in breakdown_rule(requested)
        if not any(rule_covers(owner, sub) for owner in owner_rules)
    ]
    return len(uncovered) == 0, uncovered


def breakdown_rule(rule: PolicyRule) -> list[PolicyRule]:
    """Split a rule into single-verb, single-target rules."""
    subrules: list[PolicyRule] = []

    if rule.resources:
        for group in rule.api_groups or [""]:
            for resource in rule.resources:
                for name in rule.resource_names or [None]:
                    for verb in rule.verbs:
                        subrules.append(
                            PolicyRule(
                                verbs=[verb],
                                api_groups=[group],
                                resources=[resource],
                                resource_names=[name] if name is not None else [],
                            )
                        )

    # Non-resource URLs never combine with groups or resources
    for url in rule.non_resource_urls:
        for verb in rule.verbs:
            subrules.append(PolicyRule(verbs=[verb], non_resource_urls=[url]))

    return subrules


def rule_covers(owner: PolicyRule, requested: PolicyRule) -> bool:
    """True if a single owner rule grants everything in ``requested``."""
    if not (ALL in owner.verbs or _has_all(owner.verbs, requested.verbs)):
        return False
    if requested.resources:
        if not (ALL in owner.api_groups or _has_all(owner.api_groups or [""], requested.api_groups or [""])):
            return False
    if not _resources_cover_all(owner.resources, requested.resources):
        return False
    if not _non_resource_urls_cover_all(owner.non_resource_urls, requested.non_resource_urls):
        return False

    if not requested.resource_names:
        return not owner.resource_names
    return not owner.resource_names or _has_all(owner.resource_names, requested.resource_names)


def _has_all(owned: Iterable[str], requested: Iterable[str]) -> bool:
    owned_set = set(owned)
    return all(item in owned_set for item in requested)


def _resources_cover_all(owned: list[str], requested: list[str]) -> bool:
    if ALL in owned:
        return True
    for resource in requested:
        if resource in owned:
            continue
        if "/" in resource:
            parent, sub = resource.split("/", 1)
            if f"{parent}/*" in owned or f"*/{sub}" in owned:
                continue
        return False
    return True


def _non_resource_urls_cover_all(owned: list[str], requested: list[str]) -> bool:
    return all(
        any(_non_resource_url_covers(o, r) for o in owned) for r in requested
    )


def _non_resource_url_covers(owner_url: str, requested_url: str) -> bool:
    if owner_url == requested_url or owner_url == ALL:
        return True
    return owner_url.endswith("*") and requested_url.startswith(owner_url.rstrip("*"))
