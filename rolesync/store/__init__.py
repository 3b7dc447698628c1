"""Role stores — the persistence layer the reconcile engine reads and writes.

- ``RoleClient``: the get/create/update contract the engine consumes
- ``InMemoryRoleStore``: process-local store, used in tests and dry runs
- ``LocalRoleStore``: JSON file-backed store for single-host use
"""
