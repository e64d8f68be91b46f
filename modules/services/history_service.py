"""Command history tracking."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from modules.services.redaction import redact_entry
from modules.services.storage_service import SlotStorage, StorageError, StorageQuotaExceeded

logger = logging.getLogger(__name__)

EntryType = Literal["text", "image"]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class HistoryEntry:
    """One command invocation and its outcome."""

    command: str
    input: str
    time: str
    type: EntryType = "text"
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "command": self.command,
            "input": self.input,
            "time": self.time,
            "type": self.type,
        }
        if self.result is not None:
            payload["result"] = self.result
        if self.error is not None:
            payload["error"] = self.error
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        """Build an entry from its serialized form, raising ValueError when malformed."""
        if not isinstance(data, dict):
            raise ValueError(f"History entry must be an object, got {type(data).__name__}")
        try:
            command = data["command"]
            time = data["time"]
        except KeyError as exc:
            raise ValueError(f"History entry is missing {exc}") from exc
        entry_type = data.get("type", "text")
        if entry_type not in ("text", "image"):
            raise ValueError(f"Unknown history entry type: {entry_type!r}")
        error = data.get("error")
        return cls(
            command=str(command),
            input=str(data.get("input", "")),
            time=str(time),
            type=entry_type,
            result=data.get("result"),
            error=None if error is None else str(error),
        )


class HistoryStore:
    """Most-recent-first command history mirrored to a storage slot.

    The in-memory sequence keeps full results for the running session while
    the persisted copy always goes through :func:`redact_entry`. Passing
    ``storage=None`` keeps the history in memory only.
    """

    def __init__(
        self,
        storage: Optional[SlotStorage] = None,
        key: str = "kowalskiHistory",
        limit: int = 50,
    ) -> None:
        if limit <= 0:
            raise ValueError("History limit must be positive")
        self.storage = storage
        self.key = key
        self.limit = limit
        self._entries: List[HistoryEntry] = []
        self._loading: Optional[HistoryEntry] = None
        # Gradio runs handlers in worker threads that share one store.
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[HistoryEntry]:
        """Return a copy of the history, newest first."""
        with self._lock:
            return list(self._entries)

    @property
    def loading(self) -> Optional[HistoryEntry]:
        """Entry currently shown as in flight, if any."""
        return self._loading

    def begin_loading(self, entry: HistoryEntry) -> None:
        # Single fixed slot: a second submission replaces the first placeholder.
        self._loading = entry

    def end_loading(self) -> None:
        self._loading = None

    def append(self, entry: HistoryEntry) -> None:
        """Insert an entry at the head and persist the redacted history."""
        with self._lock:
            self._entries.insert(0, entry)
            if len(self._entries) > self.limit:
                del self._entries[self.limit :]
            self._persist()

    def clear(self, confirmed: bool) -> bool:
        """Empty memory and storage when the user confirmed; report whether it happened."""
        if not confirmed:
            return False
        with self._lock:
            self._entries.clear()
            self._remove_slot()
        logger.info("History cleared")
        return True

    def load_from_persistent(self) -> List[HistoryEntry]:
        """Replace the in-memory history with the persisted one.

        Corrupt data is logged and discarded together with the slot; this
        method does not raise.
        """
        with self._lock:
            self._entries = self._read_persisted()[: self.limit]
            logger.info("Loaded %d history entries", len(self._entries))
            return list(self._entries)

    def serialized(self) -> List[Dict[str, Any]]:
        """Redacted, JSON-ready view of the history."""
        with self._lock:
            return [redact_entry(entry.to_dict()) for entry in self._entries]

    # Internal helpers ---------------------------------------------------------
    def _read_persisted(self) -> List[HistoryEntry]:
        if self.storage is None:
            return []
        try:
            raw = self.storage.get(self.key)
        except StorageError as exc:
            logger.error("Failed to load history: %s", exc)
            self._remove_slot()
            return []
        if not raw:
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            return [HistoryEntry.from_dict(item) for item in data]
        except ValueError as exc:
            logger.error("Failed to load history: %s", exc)
            self._remove_slot()
            return []

    def _persist(self) -> None:
        if self.storage is None:
            return
        payload = json.dumps(self.serialized(), ensure_ascii=False)
        try:
            self.storage.set(self.key, payload)
        except StorageQuotaExceeded as exc:
            logger.error("Failed to save history: %s", exc)
            self._remove_slot()
        except StorageError as exc:
            logger.error("Failed to save history: %s", exc)

    def _remove_slot(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.remove(self.key)
        except StorageError as exc:
            logger.error("Failed to reset history storage: %s", exc)
