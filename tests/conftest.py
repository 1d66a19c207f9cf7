# tests/conftest.py
"""
Global test bootstrap
- Points settings at throwaway backends BEFORE any reelbox import
  (sqlite URL, in-memory object store, in-process parent locks, no log files)
- Pulls in the shared fixtures (db, storage, catalog, app)
"""

from __future__ import annotations

import os
import warnings

from sqlalchemy.exc import SAWarning

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (set before importing reelbox so `settings` picks it up)
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("PARENT_LOCK_BACKEND", "local")
os.environ.setdefault("CLOUDFRONT_DOMAIN", "")
os.environ.setdefault("LOG_TO_FILE", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

warnings.filterwarnings("ignore", category=SAWarning)

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Shared fixtures
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.db import *        # noqa: F401,F403,E402
from tests.fixtures.storage import *   # noqa: F401,F403,E402
from tests.fixtures.catalog import *   # noqa: F401,F403,E402
from tests.fixtures.app import *       # noqa: F401,F403,E402
