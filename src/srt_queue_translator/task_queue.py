"""File task queue: enqueue, sequential processing, removal and export."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import FormatError
from .models import FileTask, ProcessingStatus, SrtEntry
from .orchestrator import BatchOrchestrator
from .parser import parse_srt_strict, save_srt, validate_srt_file

logger = logging.getLogger(__name__)

Codec = Callable[[str], Sequence[SrtEntry]]
TaskListener = Callable[[FileTask, Dict[str, Any]], None]

# Fields the orchestrator may report through apply_update
_UPDATABLE_FIELDS = {"status", "progress", "processed_subs", "error"}


def read_subtitle_text(path: Path) -> str:
    """Read a subtitle file, tolerating a BOM and non-UTF-8 encodings."""
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning(f"{path.name} is not valid UTF-8, decoding as latin-1")
        return raw.decode("latin-1")


class TaskQueueManager:
    """
    Owns the list of FileTasks and runs them one at a time.

    Only this class writes task state. The orchestrator reports changes
    through ``apply_update`` and an optional ``listener`` is told about
    every applied change (used by the CLI to draw progress bars).
    """

    def __init__(
        self,
        orchestrator: BatchOrchestrator,
        codec: Codec = parse_srt_strict,
        listener: Optional[TaskListener] = None,
    ):
        self.orchestrator = orchestrator
        self.codec = codec
        self.listener = listener
        self._tasks: List[FileTask] = []
        self._running = False

    @property
    def tasks(self) -> Tuple[FileTask, ...]:
        return tuple(self._tasks)

    @property
    def is_running(self) -> bool:
        return self._running

    def get_task(self, task_id: str) -> Optional[FileTask]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def _build_task(self, file_name: str, content: str) -> FileTask:
        try:
            entries = self.codec(content)
            if not entries:
                raise FormatError("No valid subtitle entries found")
        except Exception as e:
            logger.error(f"Failed to parse {file_name}: {e}")
            return FileTask(
                file_name=file_name,
                status=ProcessingStatus.ERROR,
                error=str(e) or type(e).__name__,
            )

        logger.info(f"Loaded {file_name}: {len(entries)} entries")
        return FileTask(file_name=file_name, original_subs=tuple(entries))

    def enqueue_text(self, file_name: str, content: str) -> FileTask:
        """Create one task from already-decoded subtitle text."""
        task = self._build_task(file_name, content)
        self._tasks.append(task)
        return task

    async def enqueue_files(self, paths: Iterable[Path]) -> List[FileTask]:
        """
        Read and parse each file, appending one task per file in input order.

        A file that cannot be read or parsed still produces a task, in
        ERROR status with no entries, so one bad file never rejects the
        whole upload.
        """
        new_tasks: List[FileTask] = []

        for path in paths:
            path = Path(path)
            error = validate_srt_file(path)
            if error:
                logger.error(f"Skipping {path.name}: {error}")
                new_tasks.append(FileTask(
                    file_name=path.name,
                    status=ProcessingStatus.ERROR,
                    error=error,
                ))
                continue

            try:
                content = await asyncio.to_thread(read_subtitle_text, path)
            except OSError as e:
                logger.error(f"Failed to read {path}: {e}")
                new_tasks.append(FileTask(
                    file_name=path.name,
                    status=ProcessingStatus.ERROR,
                    error=str(e),
                ))
                continue

            new_tasks.append(self._build_task(path.name, content))

        self._tasks.extend(new_tasks)
        return new_tasks

    def apply_update(self, task_id: str, **changes: Any) -> None:
        """Apply state changes reported by the orchestrator."""
        task = self.get_task(task_id)
        if task is None:
            logger.debug(f"Update for unknown task {task_id} ignored")
            return

        for key, value in changes.items():
            if key not in _UPDATABLE_FIELDS:
                raise AttributeError(f"Field '{key}' cannot be updated")
            if key == "processed_subs":
                value = list(value)
            setattr(task, key, value)

        if self.listener:
            self.listener(task, changes)

    async def run_queue(self) -> List[FileTask]:
        """
        Process every task that is not COMPLETED, one after another.

        Tasks in ERROR status are attempted again. A failing task is logged
        and the queue moves on. Calling this while a run is active does
        nothing and returns an empty list.

        Returns:
            The tasks selected for this run
        """
        if self._running:
            logger.warning("Queue is already running, ignoring request")
            return []

        self._running = True
        try:
            selected = [t for t in self._tasks if t.status is not ProcessingStatus.COMPLETED]
            logger.info(f"Processing {len(selected)} of {len(self._tasks)} tasks")

            for task in selected:
                if self.get_task(task.id) is not task:
                    logger.info(f"Skipping {task.file_name}: removed from queue")
                    continue
                if not task.original_subs:
                    logger.info(f"Skipping {task.file_name}: no subtitle entries")
                    continue
                try:
                    await self.orchestrator.run(task, self.apply_update)
                except Exception as e:
                    logger.error(f"Task {task.file_name} failed: {e}")

            return selected
        finally:
            self._running = False

    def remove_task(self, task_id: str) -> bool:
        """Delete a task. Refused while it is being processed."""
        task = self.get_task(task_id)
        if task is None:
            return False
        if task.is_processing:
            logger.warning(f"Cannot remove {task.file_name} while it is processing")
            return False
        self._tasks.remove(task)
        return True

    def set_prompt(self, task_id: str, prompt: str) -> bool:
        """Change a task's style instruction. Only allowed while IDLE."""
        task = self.get_task(task_id)
        if task is None or task.status is not ProcessingStatus.IDLE:
            return False
        task.prompt = prompt
        return True

    def set_prompt_all(self, prompt: str) -> int:
        """Apply one style instruction to every IDLE task."""
        return sum(1 for task in self._tasks if self.set_prompt(task.id, prompt))


def export_file_name(task: FileTask, prefix: str) -> str:
    return f"{prefix}{task.file_name}"


def export_task(
    task: FileTask,
    output_dir: Path,
    prefix: str,
    file_name: Optional[str] = None,
) -> Path:
    """
    Write a completed task's translated entries to ``output_dir``.

    ``file_name`` overrides the default ``<prefix><source name>``.

    Returns:
        Path of the written file
    """
    if task.status is not ProcessingStatus.COMPLETED:
        raise ValueError(f"Task {task.file_name} is not completed ({task.status.value})")

    entries = task.processed_subs or list(task.original_subs)
    out_path = output_dir / (file_name or export_file_name(task, prefix))
    save_srt(entries, out_path)
    return out_path
