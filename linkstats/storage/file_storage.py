"""
FileStorage – JSON file backend for Link Stats
==============================================

Keeps one small file per shortname under a data directory:

    <root>/urls/<shortname>.url    plain-text target URL
    <root>/stats/<shortname>.json  LinkStats document (see analytics.record)

Each write goes to its own uniquely named temporary sibling first and is moved
into place, so a crash mid-write never leaves a truncated file behind and
concurrent writers never share a temp file. Unreadable, undecodable or
malformed files surface as `StoreError`; callers decide whether that is fatal.

Example
-------
>>> storage = FileStorage("data")
>>> storage.save_link("docs", "https://example.com/docs")
>>> storage.get_link("docs")
'https://example.com/docs'
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from ..analytics.record import LinkStats
from .base import BaseStorage, StoreError

_SAFE_NAME = re.compile(r"^[a-zA-Z0-9-]+$")


class FileStorage(BaseStorage):
    """Directory-of-files implementation of the storage contract."""

    def __init__(self, root: Union[str, Path]) -> None:
        super().__init__()
        self.root = Path(root)
        self.urls_dir = self.root / "urls"
        self.stats_dir = self.root / "stats"
        self.urls_dir.mkdir(parents=True, exist_ok=True)
        self.stats_dir.mkdir(parents=True, exist_ok=True)

    # ---- Internal helpers -------------------------------------------------

    def _check_name(self, shortname: str) -> None:
        # Shortnames become file names; never allow path separators or dots.
        if not _SAFE_NAME.match(shortname or ""):
            raise StoreError(shortname, "invalid shortname for file storage")

    def _url_path(self, shortname: str) -> Path:
        self._check_name(shortname)
        return self.urls_dir / f"{shortname}.url"

    def _stats_path(self, shortname: str) -> Path:
        self._check_name(shortname)
        return self.stats_dir / f"{shortname}.json"

    @staticmethod
    def _write_atomic(path: Path, text: str) -> None:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f"{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            handle.write(text)
        try:
            os.replace(handle.name, path)
        except OSError:
            os.unlink(handle.name)
            raise

    # ---- Links ------------------------------------------------------------

    def save_link(self, shortname: str, url: str) -> None:
        path = self._url_path(shortname)
        try:
            with self.locked(shortname):
                self._write_atomic(path, url)
        except OSError as e:
            raise StoreError(shortname, f"cannot write link: {e}") from e

    def get_link(self, shortname: str) -> Optional[str]:
        try:
            path = self._url_path(shortname)
        except StoreError:
            # A name that cannot be a file name cannot have been stored.
            return None
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            raise StoreError(shortname, f"cannot read link: {e}") from e

    # ---- Stats ------------------------------------------------------------

    def get(self, shortname: str) -> Optional[LinkStats]:
        path = self._stats_path(shortname)
        if not path.exists():
            return None
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StoreError(shortname, f"cannot read stats: {e}") from e
        try:
            return LinkStats.model_validate_json(raw)
        except ValidationError as e:
            raise StoreError(shortname, f"malformed stats file: {e.error_count()} error(s)") from e

    def put(self, shortname: str, stats: LinkStats) -> None:
        path = self._stats_path(shortname)
        try:
            self._write_atomic(path, stats.to_json())
        except OSError as e:
            raise StoreError(shortname, f"cannot write stats: {e}") from e

    def exists(self, shortname: str) -> bool:
        try:
            return self._stats_path(shortname).exists()
        except StoreError:
            return False
