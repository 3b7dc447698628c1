"""Load desired roles from YAML files."""

from __future__ import annotations

from pathlib import Path

import yaml

from rolesync.errors import RoleFormatError
from rolesync.rbac.models import Role


def load_roles(path: str | Path) -> list[Role]:
    """Load every role document in a (possibly multi-document) YAML file.

    Empty documents are skipped. ``kind`` and ``apiVersion`` keys are
    accepted and ignored.
    """
    with open(path) as f:
        try:
            documents = list(yaml.safe_load_all(f))
        except yaml.YAMLError as e:
            raise RoleFormatError(f"{path}: invalid YAML: {e}") from e

    roles = []
    for i, doc in enumerate(documents):
        if doc is None:
            continue
        try:
            roles.append(Role.from_dict(doc))
        except RoleFormatError as e:
            raise RoleFormatError(f"{path}: document {i + 1}: {e}") from e
    return roles


def dump_role(role: Role) -> str:
    """Render a role as a YAML document."""
    return yaml.safe_dump(role.to_dict(), sort_keys=False)
