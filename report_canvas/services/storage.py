from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List


class StorageBackend(ABC):
    """
    Abstract interface for workbook storage (local disk today, object stores later).
    Paths are '/'-separated and relative to the backend root.
    """

    @abstractmethod
    def write_bytes(self, path: str, data: bytes) -> None:
        pass

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        pass

    @abstractmethod
    def list_dirs(self, prefix: str = "") -> List[str]:
        """Names of the immediate sub-'directories' under prefix."""
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def delete_tree(self, path: str) -> bool:
        """Remove path and everything under it. Returns False if nothing was there."""
        pass


class LocalFileSystemStorage(StorageBackend):
    """
    Local filesystem implementation rooted at a single directory.
    """

    def __init__(self, root: Path):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        # Prevent path traversal out of the root
        full_path = (self.root / path).resolve()
        if full_path != self.root and self.root not in full_path.parents:
            raise ValueError(f"Access denied: {path}")
        return full_path

    def write_bytes(self, path: str, data: bytes) -> None:
        p = self._resolve(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        # write-then-rename: readers never see a partial file
        tmp = p.with_name(p.name + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(p)

    def read_bytes(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def list_dirs(self, prefix: str = "") -> List[str]:
        p = self._resolve(prefix)
        if not p.is_dir():
            return []
        return sorted(d.name for d in p.iterdir() if d.is_dir())

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def delete_tree(self, path: str) -> bool:
        p = self._resolve(path)
        if p == self.root:
            raise ValueError("Refusing to delete the storage root")
        if not p.exists():
            return False
        if p.is_dir():
            shutil.rmtree(p)
        else:
            p.unlink()
        return True
