"""Filesystem snapshot store adapter."""

from __future__ import annotations

import os


class FileSystemSnapshotStore:
    """Existence checks against snapshot files on local disk."""

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)
