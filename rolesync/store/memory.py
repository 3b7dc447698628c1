"""In-memory role store."""

from __future__ import annotations

import threading

from rolesync.errors import AlreadyExistsError, ConflictError, NotFoundError
from rolesync.rbac.models import Role


class InMemoryRoleStore:
    """Dictionary-backed store with optimistic resource versions.

    Roles are cloned on the way in and on the way out, so callers never
    share state with the store.
    """

    def __init__(self, roles: list[Role] | None = None):
        self._roles: dict[str, Role] = {}
        self._lock = threading.Lock()
        for role in roles or []:
            self.create(role)

    def get(self, name: str) -> Role:
        with self._lock:
            role = self._roles.get(name)
            if role is None:
                raise NotFoundError(name)
            return role.clone()

    def create(self, role: Role) -> Role:
        with self._lock:
            if role.name in self._roles:
                raise AlreadyExistsError(role.name)
            stored = role.clone()
            stored.resource_version = "1"
            self._roles[role.name] = stored
            return stored.clone()

    def update(self, role: Role) -> Role:
        with self._lock:
            current = self._roles.get(role.name)
            if current is None:
                raise NotFoundError(role.name)
            if role.resource_version and role.resource_version != current.resource_version:
                raise ConflictError(role.name, role.resource_version, current.resource_version)
            stored = role.clone()
            stored.resource_version = str(int(current.resource_version) + 1)
            self._roles[role.name] = stored
            return stored.clone()

    def delete(self, name: str) -> None:
        with self._lock:
            if self._roles.pop(name, None) is None:
                raise NotFoundError(name)

    def list_roles(self) -> list[Role]:
        with self._lock:
            return [self._roles[n].clone() for n in sorted(self._roles)]
