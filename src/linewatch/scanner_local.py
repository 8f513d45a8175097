from __future__ import annotations

import fnmatch
import os
import unicodedata
from pathlib import Path

from .config import EXCLUDED_FILE_NAMES
from .models import FileIdentifier


def is_excluded_file_name(name: str) -> bool:
    return name in EXCLUDED_FILE_NAMES


def normalize_text(value: str) -> str:
    """Collapse surrogate-escaped bytes and canonicalize to NFC.

    Undecodable filename bytes would otherwise break terminal rendering.
    """
    safe = value.encode("utf-8", "surrogateescape").decode("utf-8", "replace")
    return unicodedata.normalize("NFC", safe)


class LocalScanner:
    """Lists the regular files directly under ``root`` matching a glob pattern."""

    def __init__(self, root: Path) -> None:
        self.root = root.expanduser().resolve()

    def scan(self, pattern: str = "*") -> dict[str, FileIdentifier]:
        if not self.root.exists() or not self.root.is_dir():
            raise FileNotFoundError(f"Watch root not found: {self.root}")

        records: dict[str, FileIdentifier] = {}
        with os.scandir(self.root) as entries:
            for entry in entries:
                if is_excluded_file_name(entry.name):
                    continue
                if not fnmatch.fnmatch(entry.name, pattern):
                    continue
                try:
                    if not entry.is_file():
                        continue
                    st = entry.stat()
                except FileNotFoundError:
                    # removed between listing and stat
                    continue
                path = entry.path
                records[path] = FileIdentifier(path=path, mtime_ns=st.st_mtime_ns)
        return records
