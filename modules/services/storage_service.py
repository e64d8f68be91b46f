"""Named-slot persistent storage."""

from __future__ import annotations

import errno
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024
_FULL_DISK_ERRNOS = (errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC))


class StorageError(RuntimeError):
    """Base error for slot storage failures."""


class StorageQuotaExceeded(StorageError):
    """Raised when a value does not fit into the storage quota."""


class SlotStorage(Protocol):
    """Minimal key/value contract used by the history store."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


def _check_quota(key: str, value: str, quota_bytes: int) -> None:
    size = len(value.encode("utf-8"))
    if quota_bytes > 0 and size > quota_bytes:
        raise StorageQuotaExceeded(
            f"Value for '{key}' is {size} bytes, quota is {quota_bytes} bytes"
        )


class MemorySlotStorage:
    """Dictionary-backed storage, mainly for tests and ephemeral sessions."""

    def __init__(self, quota_bytes: int = DEFAULT_QUOTA_BYTES) -> None:
        self.quota_bytes = quota_bytes
        self._slots: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    def set(self, key: str, value: str) -> None:
        _check_quota(key, value, self.quota_bytes)
        self._slots[key] = value

    def remove(self, key: str) -> None:
        self._slots.pop(key, None)


class FileSlotStorage:
    """Keep every slot in ``<directory>/<key>.json``."""

    def __init__(self, directory: Path, quota_bytes: int = DEFAULT_QUOTA_BYTES) -> None:
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes

    def _slot_path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid slot name: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._slot_path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Failed to read slot '{key}': {exc}") from exc

    def set(self, key: str, value: str) -> None:
        _check_quota(key, value, self.quota_bytes)
        path = self._slot_path(key)
        tmp_name: Optional[str] = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # 每次写入使用独立的临时文件，避免并发写入互相覆盖
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.directory,
                prefix=f".{key}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(value)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            if exc.errno in _FULL_DISK_ERRNOS:
                raise StorageQuotaExceeded(f"No space left for slot '{key}'") from exc
            raise StorageError(f"Failed to write slot '{key}': {exc}") from exc

    def remove(self, key: str) -> None:
        path = self._slot_path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to remove slot '{key}': {exc}") from exc
