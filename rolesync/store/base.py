"""The store contract consumed by the reconcile engine."""

from __future__ import annotations

from typing import Protocol

from rolesync.rbac.models import Role


class RoleClient(Protocol):
    """Fetch, create and replace roles by name.

    Implementations raise ``NotFoundError`` from ``get``/``update`` when the
    role is absent, ``AlreadyExistsError`` from ``create`` when it is present,
    and ``ConflictError`` from ``update`` on a stale resource version.
    """

    def get(self, name: str) -> Role: ...

    def create(self, role: Role) -> Role: ...

    def update(self, role: Role) -> Role: ...
