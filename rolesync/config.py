"""Configuration defaults.

Values are read from the environment once at import time; CLI options
override them per invocation.
"""

from __future__ import annotations

import os
from pathlib import Path

_HOME = Path.home() / ".rolesync"

DEFAULT_STORE_DIR = Path(os.environ.get("ROLESYNC_STORE_DIR", str(_HOME / "store")))
DEFAULT_AUDIT_DIR = Path(os.environ.get("ROLESYNC_AUDIT_DIR", str(_HOME / "audit_logs")))

# Total attempts per Run when a role keeps appearing or disappearing underneath us.
MAX_RECONCILE_ATTEMPTS = 3

DEFAULT_CONFLICT_RETRIES = int(os.environ.get("ROLESYNC_CONFLICT_RETRIES", "5"))
CONFLICT_BACKOFF_SECONDS = 0.05
