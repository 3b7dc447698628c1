"""RBAC data models — roles and the policy rules they grant."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rolesync.errors import RoleFormatError

# Setting this annotation to the literal "false" opts a role out of reconciliation.
AUTO_UPDATE_ANNOTATION_KEY = "rbac.authorization.kubernetes.io/autoupdate"


@dataclass
class PolicyRule:
    """A single access grant."""

    verbs: list[str] = field(default_factory=list)
    api_groups: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    resource_names: list[str] = field(default_factory=list)
    non_resource_urls: list[str] = field(default_factory=list)

    def copy(self) -> PolicyRule:
        return PolicyRule(
            verbs=list(self.verbs),
            api_groups=list(self.api_groups),
            resources=list(self.resources),
            resource_names=list(self.resource_names),
            non_resource_urls=list(self.non_resource_urls),
        )

    def to_dict(self) -> dict[str, list[str]]:
        data: dict[str, list[str]] = {"verbs": list(self.verbs)}
        if self.api_groups:
            data["apiGroups"] = list(self.api_groups)
        if self.resources:
            data["resources"] = list(self.resources)
        if self.resource_names:
            data["resourceNames"] = list(self.resource_names)
        if self.non_resource_urls:
            data["nonResourceURLs"] = list(self.non_resource_urls)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PolicyRule:
        if not isinstance(data, dict):
            raise RoleFormatError(f"policy rule must be a mapping, got {type(data).__name__}")
        verbs = _string_list(data, "verbs")
        if not verbs:
            raise RoleFormatError("policy rule has no verbs")
        return cls(
            verbs=verbs,
            api_groups=_string_list(data, "apiGroups"),
            resources=_string_list(data, "resources"),
            resource_names=_string_list(data, "resourceNames"),
            non_resource_urls=_string_list(data, "nonResourceURLs"),
        )

    def describe(self) -> str:
        """Short human-readable form, e.g. ``get,list pods``."""
        verbs = ",".join(self.verbs)
        if self.non_resource_urls:
            return f"{verbs} {','.join(self.non_resource_urls)}"
        target = ",".join(self.resources)
        groups = [g for g in self.api_groups if g]
        if groups:
            target = f"{target}.{','.join(groups)}"
        if self.resource_names:
            target = f"{target}/{','.join(self.resource_names)}"
        return f"{verbs} {target}"


@dataclass
class Role:
    """A named bundle of policy rules plus metadata.

    ``annotations`` and ``labels`` distinguish an unset map (``None``) from an
    empty one; the reconcile engine relies on that difference.
    """

    name: str
    annotations: dict[str, str] | None = None
    labels: dict[str, str] | None = None
    rules: list[PolicyRule] = field(default_factory=list)
    resource_version: str = ""  # Assigned by the store

    @property
    def protected(self) -> bool:
        """True when the role opted out of automatic reconciliation."""
        return (self.annotations or {}).get(AUTO_UPDATE_ANNOTATION_KEY) == "false"

    def clone(self) -> Role:
        return Role(
            name=self.name,
            annotations=dict(self.annotations) if self.annotations is not None else None,
            labels=dict(self.labels) if self.labels is not None else None,
            rules=[r.copy() for r in self.rules],
            resource_version=self.resource_version,
        )

    def to_dict(self) -> dict[str, Any]:
        metadata: dict[str, Any] = {"name": self.name}
        if self.annotations is not None:
            metadata["annotations"] = dict(self.annotations)
        if self.labels is not None:
            metadata["labels"] = dict(self.labels)
        if self.resource_version:
            metadata["resourceVersion"] = self.resource_version
        return {
            "metadata": metadata,
            "rules": [r.to_dict() for r in self.rules],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Role:
        if not isinstance(data, dict):
            raise RoleFormatError(f"role must be a mapping, got {type(data).__name__}")
        metadata = data.get("metadata") or {}
        name = metadata.get("name")
        if not name or not isinstance(name, str):
            raise RoleFormatError("role is missing metadata.name")
        rules = data.get("rules") or []
        if not isinstance(rules, list):
            raise RoleFormatError(f"role '{name}': rules must be a list")
        return cls(
            name=name,
            annotations=_string_map(metadata, "annotations", name),
            labels=_string_map(metadata, "labels", name),
            rules=[PolicyRule.from_dict(r) for r in rules],
            resource_version=str(metadata.get("resourceVersion", "")),
        )


def _string_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise RoleFormatError(f"'{key}' must be a list")
    return [str(v) for v in value]


def _string_map(metadata: dict[str, Any], key: str, name: str) -> dict[str, str] | None:
    if key not in metadata or metadata[key] is None:
        return None
    value = metadata[key]
    if not isinstance(value, dict):
        raise RoleFormatError(f"role '{name}': metadata.{key} must be a mapping")
    for k, v in value.items():
        # Unquoted YAML `false` must not become "False"
        if not isinstance(k, str) or not isinstance(v, str):
            raise RoleFormatError(
                f"role '{name}': metadata.{key} entry {k!r}: {v!r} must be a string, "
                f"quote it in YAML"
            )
    return dict(value)
