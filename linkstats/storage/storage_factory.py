"""
Storage factory – switch storage backend from config (lazy env version)
=======================================================================

This module centralizes selection of the storage backend (in-memory, files, DB)
so the rest of the app can stay ignorant of where data lives.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- LINKSTATS_STORAGE_BACKEND: "memory" (default), "file" or "postgres"
- LINKSTATS_DATA_DIR:        root folder if backend=="file" (default "data")
- LINKSTATS_DB_DSN:          DSN string if backend=="postgres"
"""

from typing import Optional
import logging
import os

from linkstats.storage.base import BaseStorage
from linkstats.storage.storage import Storage

log = logging.getLogger("linkstats.storage")


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a storage backend based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory", "file" or "postgres". If omitted, reads LINKSTATS_STORAGE_BACKEND.
    kwargs : dict
        Extra args: root="..." for the file backend, dsn="..." for postgres.

    Returns
    -------
    BaseStorage
    """
    be = (backend or os.getenv("LINKSTATS_STORAGE_BACKEND", "memory")).strip().lower()
    log.debug("Selected storage backend: %r", be)

    if be == "memory":
        return Storage()

    if be == "file":
        from linkstats.storage.file_storage import FileStorage

        root = kwargs.get("root") or os.getenv("LINKSTATS_DATA_DIR", "data")
        return FileStorage(root=root)

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("LINKSTATS_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env LINKSTATS_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from linkstats.storage.db_storage import DBStorage

        return DBStorage(dsn=dsn)

    raise ValueError(f"Unknown storage backend: {be!r}")
