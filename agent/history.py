"""
agent/history.py — The saved list of past queries.

Rules:
  - most recent first
  - unique — re-running a query moves it to the front instead of adding a copy
  - capped at max_entries — the oldest falls off the end
  - only successful runs are added (ResearchSession decides that, not us)
  - the user can delete one entry or clear everything

Persistence is optional. With a path, the list is loaded from a JSON file
at construction and written back after every change. A missing or
unreadable file starts an empty history; it is not an error. A failed
write is logged and the in-memory list stays current.

USAGE:
  from agent.history import QueryHistory

  history = QueryHistory(max_entries=50, path="logs/history.json")
  history.add("electric vehicles market")
  print(history.entries)   # ["electric vehicles market", ...]
"""

import json
from pathlib import Path

from config import settings


class QueryHistory:

    def __init__(self, max_entries: int | None = None, path: str | Path | None = None) -> None:
        self._max_entries = max_entries or settings.history_max_entries
        self._path = Path(path) if path else None
        self._entries: list[str] = self._load()

    @classmethod
    def from_settings(cls) -> "QueryHistory":
        return cls(
            max_entries=settings.history_max_entries,
            path=settings.history_path or None,
        )

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, query: object) -> bool:
        return query in self._entries

    def add(self, query: str) -> None:
        """Put query at the front, removing any older copy, and enforce the cap."""
        query = query.strip()
        if not query:
            return
        self._entries = [query] + [q for q in self._entries if q != query]
        del self._entries[self._max_entries:]
        self._save()

    def remove(self, query: str) -> bool:
        """Delete one entry. Returns False if it wasn't there."""
        if query not in self._entries:
            return False
        self._entries.remove(query)
        self._save()
        return True

    def clear(self) -> None:
        self._entries = []
        self._save()

    # ── Persistence ───────────────────────────────────────────────────────────

    def _load(self) -> list[str]:
        if self._path is None or not self._path.exists():
            return []
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            _log(f"Ignoring unreadable history file {self._path}: {e}")
            return []

        if not isinstance(data, list):
            return []

        entries: list[str] = []
        for item in data:
            if isinstance(item, str) and item.strip() and item not in entries:
                entries.append(item)
        return entries[: self._max_entries]

    def _save(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._entries, f, indent=2)
        except OSError as e:
            _log(f"Could not save history to {self._path}: {e}")


def _log(message: str) -> None:
    print(f"[history] {message}")
