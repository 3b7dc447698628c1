"""rolesync — converge persisted RBAC roles toward their desired rule sets."""

__version__ = "0.1.0"
