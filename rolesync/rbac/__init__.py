"""RBAC domain types and the rule coverage comparator."""
