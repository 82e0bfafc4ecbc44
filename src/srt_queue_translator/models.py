"""Data models for subtitle entries and file translation tasks."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass
class SrtEntry:
    """Represents a single subtitle entry in SRT format."""

    id: int
    start: str
    end: str
    text: str

    @property
    def timecode(self) -> str:
        """Return the timecode line in SRT format."""
        return f"{self.start} --> {self.end}"

    def to_srt(self) -> str:
        """Convert entry to SRT format string, keeping its own id."""
        return f"{self.id}\n{self.timecode}\n{self.text}\n\n"

    def copy(self, **changes) -> "SrtEntry":
        """Create a copy with optional field changes."""
        return SrtEntry(
            id=changes.get('id', self.id),
            start=changes.get('start', self.start),
            end=changes.get('end', self.end),
            text=changes.get('text', self.text),
        )


@dataclass(frozen=True)
class TranslationResult:
    """One translated line returned by a provider."""
    id: int
    translated_text: str


class ProcessingStatus(Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


def _new_task_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class FileTask:
    """
    One uploaded file's end-to-end translation job.

    ``original_subs`` is a tuple so the source entries cannot be reordered
    or replaced once the task exists. ``processed_subs`` is the working copy
    published by the orchestrator after every batch.
    """

    file_name: str
    original_subs: Tuple[SrtEntry, ...] = ()
    processed_subs: List[SrtEntry] = field(default_factory=list)
    prompt: str = ""
    status: ProcessingStatus = ProcessingStatus.IDLE
    progress: int = 0
    error: Optional[str] = None
    id: str = field(default_factory=_new_task_id)

    def __post_init__(self):
        self.original_subs = tuple(self.original_subs)

    @property
    def entry_count(self) -> int:
        return len(self.original_subs)

    @property
    def is_processing(self) -> bool:
        return self.status is ProcessingStatus.PROCESSING
