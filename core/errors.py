"""
Errors Module
Exception types and the shared error log written during a diff run.
"""

import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional


class VisualDiffError(Exception):
    """Base class for all visual diff errors."""


class InvalidInputError(VisualDiffError):
    """Raised when the task list is malformed."""


class ConfigError(VisualDiffError):
    """Raised when run options or the job file are invalid."""


class CaptureError(VisualDiffError):
    """Raised when the bulk screenshot capture fails."""


class ImageDecodeError(VisualDiffError):
    """Raised when image bytes cannot be decoded."""


@dataclass(frozen=True)
class ErrorEntry:
    message: str
    # None marks a run-level failure not tied to any task
    name: Optional[str] = None

    @property
    def is_run_level(self) -> bool:
        return self.name is None


class ErrorLog:
    """Append-only error list shared by concurrent comparisons."""

    def __init__(self):
        self._entries: List[ErrorEntry] = []
        self._lock = threading.Lock()

    def add(self, entry: ErrorEntry) -> ErrorEntry:
        with self._lock:
            self._entries.append(entry)
        return entry

    def record(self, message: str, name: Optional[str] = None) -> ErrorEntry:
        return self.add(ErrorEntry(message=message, name=name))

    def entries(self) -> List[ErrorEntry]:
        """Return a snapshot of the recorded entries in completion order."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def errors_for_task(errors: Iterable[ErrorEntry], name: str) -> List[ErrorEntry]:
    """Entries whose name equals the task name exactly."""
    return [e for e in errors if e.name == name]


def run_level_errors(errors: Iterable[ErrorEntry]) -> List[ErrorEntry]:
    return [e for e in errors if e.is_run_level]
