import os
from pathlib import Path

DB_PATH = os.environ.get("BOOKSHELF_DB_PATH", str(Path.cwd() / "bookshelf.db"))
DATABASE_URL = f"sqlite+aiosqlite:///{DB_PATH}"

# "sql" keeps shelves in DATABASE_URL, "postgrest" talks to a hosted backend
STORE_BACKEND = os.environ.get("BOOKSHELF_STORE", "sql")

# Hosted REST backend settings
POSTGREST_URL = os.environ.get("BOOKSHELF_POSTGREST_URL", "")
POSTGREST_KEY = os.environ.get("BOOKSHELF_POSTGREST_KEY", "")

STORE_TIMEOUT = float(os.environ.get("BOOKSHELF_STORE_TIMEOUT", "10.0"))

# "contains" matches any stored row whose authors include the given ones,
# "exact" requires the same set of authors
DEDUP_MODE = os.environ.get("BOOKSHELF_DEDUP_MODE", "contains")

UNKNOWN_SHELF_FALLBACK = os.environ.get("BOOKSHELF_UNKNOWN_SHELF_FALLBACK") or None

LOG_LEVEL = os.environ.get("BOOKSHELF_LOG_LEVEL", "INFO").upper()
