"""User-facing progress log polled by status readers.

One ProgressLog exists per operation kind. Appends and reads are guarded by a
lock so a poller can read the whole buffer while a run is appending to it.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable

from .models import Severity


@dataclass(frozen=True)
class ProgressEntry:
    message: str
    severity: Severity = Severity.INFO
    time: datetime = field(default_factory=datetime.now)

    def format(self) -> str:
        return f"{self.time:%H:%M:%S} [{self.severity.upper()}] {self.message}"


class ProgressLog:
    """Append-only, thread-safe buffer of severity-tagged lines.

    ``sink`` is called with every appended entry, outside the lock.
    """

    def __init__(self, sink: Callable[[ProgressEntry], None] | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: list[ProgressEntry] = []
        self.sink = sink

    def log(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.extend([ProgressEntry(message, severity)])

    def info(self, message: str) -> None:
        self.log(message, Severity.INFO)

    def success(self, message: str) -> None:
        self.log(message, Severity.SUCCESS)

    def error(self, message: str) -> None:
        self.log(message, Severity.ERROR)

    def extend(self, entries: Iterable[ProgressEntry]) -> None:
        entries = list(entries)
        with self._lock:
            self._entries.extend(entries)
        if self.sink is not None:
            for entry in entries:
                self.sink(entry)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def entries(self) -> list[ProgressEntry]:
        with self._lock:
            return list(self._entries)

    def read(self) -> str:
        """Return the full buffer as text, one line per entry."""
        with self._lock:
            return "\n".join(entry.format() for entry in self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
