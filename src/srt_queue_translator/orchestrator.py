"""Batch-by-batch translation of one subtitle file."""

from __future__ import annotations

import asyncio
import logging
from typing import AbstractSet, Callable, Dict, List, Optional, Sequence, Set

from .models import FileTask, ProcessingStatus, SrtEntry, TranslationResult
from .translator import TranslationProvider

logger = logging.getLogger(__name__)

# Progress shown as soon as a run starts, before the first batch returns
INITIAL_PROGRESS = 2

UpdateCallback = Callable[..., None]


def partition_batches(entries: Sequence[SrtEntry], batch_size: int) -> List[List[SrtEntry]]:
    """Split entries into consecutive slices of at most ``batch_size``."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [list(entries[i:i + batch_size]) for i in range(0, len(entries), batch_size)]


def compute_progress(completed_batches: int, total_batches: int) -> int:
    """Percentage of batches done, floored, in [0, 100]."""
    if total_batches <= 0:
        return 100
    done = min(max(completed_batches, 0), total_batches)
    return done * 100 // total_batches


def merge_results(
    working: List[SrtEntry],
    results: Sequence[TranslationResult],
    batch_ids: Optional[AbstractSet[int]] = None,
) -> int:
    """
    Write translated text into ``working`` by exact id match.

    Only ``text`` changes; the id and time span are kept. Entries are
    replaced with copies rather than mutated, so lists published earlier
    stay unchanged. Results whose id is not a plain ``int`` or is absent
    from ``working`` (or from ``batch_ids`` when given) are ignored.

    Returns:
        Number of distinct entries updated
    """
    positions: Dict[int, int] = {e.id: i for i, e in enumerate(working)}
    updated: Set[int] = set()

    for result in results:
        if type(result.id) is not int:
            logger.debug(f"Ignoring result with non-integer id {result.id!r}")
            continue
        if batch_ids is not None and result.id not in batch_ids:
            logger.debug(f"Ignoring result for id {result.id} outside the current batch")
            continue
        pos = positions.get(result.id)
        if pos is None:
            logger.debug(f"Ignoring result for unknown id {result.id}")
            continue
        working[pos] = working[pos].copy(text=result.translated_text)
        updated.add(result.id)

    return len(updated)


class BatchOrchestrator:
    """
    Drives one FileTask through the active provider.

    The orchestrator never writes to the task itself: every state change is
    reported through ``on_update(task_id, **changes)`` and applied by the
    owner of the task.

    There is no cancellation support. Once ``run`` starts it continues until
    the last batch finishes or one batch fails.
    """

    def __init__(
        self,
        provider: TranslationProvider,
        credentials: Callable[[], str],
        batch_size: int = 40,
        batch_delay: float = 0.0,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if batch_delay < 0:
            raise ValueError(f"batch_delay must be >= 0, got {batch_delay}")
        self.provider = provider
        self.credentials = credentials
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def run(self, task: FileTask, on_update: UpdateCallback) -> None:
        """
        Translate ``task.original_subs`` batch by batch.

        Raises:
            Whatever the provider raised for the failing batch, after the
            task has been reported as ERROR.
        """
        if not task.original_subs:
            logger.debug(f"Task {task.id} has no entries, nothing to do")
            return

        # Read once so a key change mid-run only affects the next run
        api_key = self.credentials()

        working = [e.copy() for e in task.original_subs]
        batches = partition_batches(task.original_subs, self.batch_size)
        total = len(batches)
        progress = INITIAL_PROGRESS

        on_update(
            task.id,
            status=ProcessingStatus.PROCESSING,
            progress=progress,
            error=None,
            processed_subs=list(working),
        )
        logger.info(
            f"[{task.file_name}] {len(working)} entries in {total} batches "
            f"via {self.provider.name}"
        )

        for index, batch in enumerate(batches):
            try:
                results = await self.provider.translate_batch(batch, task.prompt, api_key)
            except Exception as e:
                logger.error(f"[{task.file_name}] Batch {index + 1}/{total} failed: {e}")
                on_update(task.id, status=ProcessingStatus.ERROR, error=str(e) or type(e).__name__)
                raise

            updated = merge_results(working, results, {e.id for e in batch})
            if updated < len(batch):
                logger.warning(
                    f"[{task.file_name}] Batch {index + 1}/{total}: "
                    f"{len(batch) - updated} entries kept their original text"
                )

            progress = max(progress, compute_progress(index + 1, total))
            on_update(task.id, progress=progress, processed_subs=list(working))
            logger.debug(f"[{task.file_name}] Batch {index + 1}/{total} done ({progress}%)")

            if self.batch_delay > 0 and index < total - 1:
                await asyncio.sleep(self.batch_delay)

        on_update(task.id, status=ProcessingStatus.COMPLETED, progress=100)
        logger.info(f"[{task.file_name}] Translation completed")
