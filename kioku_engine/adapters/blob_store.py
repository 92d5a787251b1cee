"""Blob store backends: opaque ``get``/``set`` of serialized bytes under a key."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol


class BlobStore(Protocol):
    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, data: bytes) -> bool:
        ...


class MemoryBlobStore:
    """Dict-backed store, used by tests and demos."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.blobs: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self.blobs.get(key)

    def set(self, key: str, data: bytes) -> bool:
        self.blobs[key] = bytes(data)
        return True


def _file_name(key: str) -> str:
    safe = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in key.lstrip("@"))
    return f"{safe or 'blob'}.json"


class FileBlobStore:
    """One file per key under ``base_dir``; writes go through a temp file."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Path:
        return self.base_dir / _file_name(key)

    def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, data: bytes) -> bool:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        fd, temp_path = tempfile.mkstemp(dir=self.base_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(temp_path, path)
        except OSError:
            Path(temp_path).unlink(missing_ok=True)
            raise
        return True
