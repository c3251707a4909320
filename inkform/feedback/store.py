"""Durable, size-bounded log of user corrections.

Every edit a reviewer makes to an extracted field is remembered here so
that the same OCR misreading is corrected automatically the next time it
shows up. The log is a JSON list rewritten on each change.
"""

import json
import os
import tempfile
import threading
import time
from dataclasses import asdict, dataclass
from pathlib import Path

from inkform.utils.logger import get_logger

logger = get_logger(__name__)

_MAX_STAT_EXAMPLES = 3


@dataclass(frozen=True)
class UserCorrection:
    """One remembered edit, with an epoch-millisecond timestamp."""

    field: str
    original: str
    corrected: str
    timestamp: int


class FeedbackStore:
    """Append-only correction log with most-recent-first suggestions.

    Writers are serialized with a lock; lookups are plain scans over an
    in-memory list that never exceeds ``max_entries``.

    Args:
        path: JSON file holding the persisted log. ``None`` keeps the log
            in memory only.
        max_entries: Number of most recent corrections retained.
    """

    def __init__(self, path: Path | None = None, max_entries: int = 100) -> None:
        self.path = path
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: list[UserCorrection] = self._load()

    def __len__(self) -> int:
        return len(self._entries)

    def _load(self) -> list[UserCorrection]:
        if self.path is None or not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
            entries = [
                UserCorrection(
                    field=str(item["field"]),
                    original=str(item["original"]),
                    corrected=str(item["corrected"]),
                    timestamp=int(item.get("timestamp", 0)),
                )
                for item in raw
            ]
        except (OSError, ValueError, TypeError, KeyError) as exc:
            logger.error("Failed to load corrections from %s: %s", self.path, exc)
            return []

        entries = entries[-self.max_entries :]
        logger.info("Loaded %d user corrections from %s", len(entries), self.path)
        return entries

    def _persist(self) -> None:
        if self.path is None:
            return
        payload = [asdict(e) for e in self._entries]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=".corrections-", suffix=".json"
            )
        except OSError as exc:
            logger.error("Failed to save corrections to %s: %s", self.path, exc)
            return

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.error("Failed to save corrections to %s: %s", self.path, exc)
        finally:
            # Already gone after a successful replace.
            Path(tmp_name).unlink(missing_ok=True)

    def record(self, field: str, original: str, corrected: str) -> UserCorrection | None:
        """Remember that ``original`` was corrected to ``corrected``.

        Nothing is recorded when either side is empty after trimming or
        when the two are identical.

        Returns:
            The stored correction, or ``None`` if nothing was recorded.
        """
        original = original.strip()
        corrected = corrected.strip()
        if not original or not corrected or original == corrected:
            return None

        entry = UserCorrection(
            field=str(field),
            original=original,
            corrected=corrected,
            timestamp=int(time.time() * 1000),
        )
        with self._lock:
            self._entries.append(entry)
            while len(self._entries) > self.max_entries:
                self._entries.pop(0)
            self._persist()

        logger.info("Feedback learned for %s: %r -> %r", field, original, corrected)
        return entry

    def suggest(self, field: str, value: str) -> str | None:
        """Return a previously learned correction for ``value``, if any.

        Exact case-insensitive matches win over substring matches; within
        each pass the most recent entry wins.
        """
        needle = value.strip().lower()
        if not needle:
            return None

        field = str(field)
        candidates = [e for e in reversed(self._entries) if e.field == field]
        for entry in candidates:
            if entry.original.lower() == needle:
                return entry.corrected
        for entry in candidates:
            if needle in entry.original.lower():
                return entry.corrected
        return None

    def all(self) -> list[UserCorrection]:
        """Copy of the log, oldest first."""
        return list(self._entries)

    def stats(self) -> dict[str, dict[str, object]]:
        """Per-field correction counts with a few examples each."""
        stats: dict[str, dict[str, object]] = {}
        for entry in self._entries:
            bucket = stats.setdefault(entry.field, {"count": 0, "examples": []})
            bucket["count"] += 1
            if len(bucket["examples"]) < _MAX_STAT_EXAMPLES:
                bucket["examples"].append(f'"{entry.original}" → "{entry.corrected}"')
        return stats

    def clear(self) -> None:
        """Forget every correction and persist the empty log."""
        with self._lock:
            self._entries.clear()
            self._persist()
        logger.info("All user corrections cleared")
