"""Local file-based role store.

A simple, file-system-backed store for development and single-host use.
All roles live in one JSON index keyed by role name. The index is re-read
on every operation, and every read-check-write runs under an exclusive
``flock`` on a sibling lock file, so separate processes (and separate store
instances) sharing a directory observe each other's writes. POSIX only.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from rolesync.errors import AlreadyExistsError, ConflictError, NotFoundError, StoreError
from rolesync.rbac.models import Role


class LocalRoleStore:
    """File-based local store for roles."""

    INDEX_FILE = "roles.json"
    LOCK_FILE = "roles.json.lock"

    def __init__(self, store_dir: str | Path):
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self.index_path = self.store_dir / self.INDEX_FILE
        self.lock_path = self.store_dir / self.LOCK_FILE

    def get(self, name: str) -> Role:
        data = self._load_index().get(name)
        if data is None:
            raise NotFoundError(name)
        return Role.from_dict(data)

    def create(self, role: Role) -> Role:
        with self._locked():
            index = self._load_index()
            if role.name in index:
                raise AlreadyExistsError(role.name)
            stored = role.clone()
            stored.resource_version = "1"
            index[role.name] = stored.to_dict()
            self._save_index(index)
        return stored

    def update(self, role: Role) -> Role:
        with self._locked():
            index = self._load_index()
            if role.name not in index:
                raise NotFoundError(role.name)
            current_version = str(index[role.name].get("metadata", {}).get("resourceVersion", "0"))
            if role.resource_version and role.resource_version != current_version:
                raise ConflictError(role.name, role.resource_version, current_version)
            stored = role.clone()
            stored.resource_version = str(int(current_version) + 1)
            index[role.name] = stored.to_dict()
            self._save_index(index)
        return stored

    def delete(self, name: str) -> None:
        with self._locked():
            index = self._load_index()
            if index.pop(name, None) is None:
                raise NotFoundError(name)
            self._save_index(index)

    def list_roles(self) -> list[Role]:
        index = self._load_index()
        return [Role.from_dict(index[n]) for n in sorted(index)]

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with open(self.lock_path, "a") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _load_index(self) -> dict[str, dict]:
        if not self.index_path.exists():
            return {}
        try:
            with open(self.index_path) as f:
                index = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError("", f"corrupt role index {self.index_path}: {e}") from e
        if not isinstance(index, dict):
            raise StoreError("", f"corrupt role index {self.index_path}: expected an object")
        return index

    def _save_index(self, index: dict[str, dict]):
        with tempfile.NamedTemporaryFile(
            "w", dir=self.store_dir, prefix=".roles.", suffix=".tmp", delete=False
        ) as f:
            json.dump(index, f, indent=2, sort_keys=True)
        os.replace(f.name, self.index_path)
