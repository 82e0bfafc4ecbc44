"""Command-line interface for SRT Queue Translator."""

from __future__ import annotations

import asyncio
import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Set

from tqdm import tqdm

from .config import DEFAULT_BATCH_SIZE, DEFAULT_TARGET_LANGUAGE, TranslatorConfig
from .credentials import CredentialStore
from .models import FileTask, ProcessingStatus
from .orchestrator import BatchOrchestrator
from .task_queue import TaskQueueManager, export_file_name, export_task
from .translator import PROVIDERS, create_provider


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )
    # SDK transport logs are noisy at INFO
    for name in ("httpx", "httpcore", "openai", "google_genai"):
        logging.getLogger(name).setLevel(logging.WARNING)


def parse_arguments(argv: List[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Translate subtitle files batch by batch with an LLM provider",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s a.srt b.srt                          # Translate a queue of files
  %(prog)s a.srt --provider gemini              # Use Gemini instead of OpenAI
  %(prog)s a.srt -p "Casual, Gen Z slang"       # Style instruction
  %(prog)s --set-key sk-xxxx                    # Store the OpenAI key
  %(prog)s --provider gemini --clear-key        # Forget the Gemini key
        """
    )

    parser.add_argument("input_paths", nargs="*", help="Subtitle files (.srt or .txt)")
    parser.add_argument("-o", "--output-dir", dest="output_dir",
                        help="Output directory (default: next to each input file)")

    # Provider
    parser.add_argument("--provider", choices=sorted(PROVIDERS), default="openai")
    parser.add_argument("--openai-model", dest="openai_model", default="gpt-4o-mini")
    parser.add_argument("--gemini-model", dest="gemini_model", default="gemini-2.5-flash-lite")
    parser.add_argument("--base-url", help="OpenAI-compatible base URL")

    # Translation
    parser.add_argument("-p", "--prompt", default="", help="Style instruction for every file")
    parser.add_argument("-t", "--target-language", dest="target_language",
                        default=DEFAULT_TARGET_LANGUAGE)
    parser.add_argument("--batch-size", dest="batch_size", type=int, default=DEFAULT_BATCH_SIZE,
                        help="Entries per request")
    parser.add_argument("--delay", dest="batch_delay", type=float, default=0.0,
                        help="Seconds to wait between batches")

    # Credentials
    parser.add_argument("--set-key", dest="set_key", help="Store an API key for --provider")
    parser.add_argument("--clear-key", dest="clear_key", action="store_true",
                        help="Remove the stored API key for --provider")
    parser.add_argument("--credentials", dest="credentials_path",
                        help="Credential store file")

    # Misc
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    return parser.parse_args(argv)


class ProgressRenderer:
    """One tqdm bar per task, driven by queue updates."""

    def __init__(self):
        self._bars: Dict[str, tqdm] = {}

    def __call__(self, task: FileTask, changes: Dict[str, Any]) -> None:
        bar = self._bars.get(task.id)
        if bar is None:
            bar = tqdm(total=100, desc=task.file_name, unit="%", leave=True)
            self._bars[task.id] = bar

        if "progress" in changes:
            bar.n = task.progress
            bar.refresh()

        if task.status in (ProcessingStatus.COMPLETED, ProcessingStatus.ERROR):
            if task.status is ProcessingStatus.ERROR:
                bar.set_postfix_str("error")
            bar.close()
            del self._bars[task.id]


def unique_export_name(out_dir: Path, name: str, used: Set[Path]) -> str:
    """Return ``name``, or ``<stem>_<n><suffix>`` if that path was already written this run."""
    candidate = name
    n = 1
    while out_dir / candidate in used:
        candidate = f"{Path(name).stem}_{n}{Path(name).suffix}"
        n += 1
    used.add(out_dir / candidate)
    return candidate


async def main_async(args: argparse.Namespace) -> int:
    """Main async workflow."""
    logger = logging.getLogger(__name__)
    config = TranslatorConfig.from_args(args)

    error = config.validate()
    if error:
        logger.error(error)
        return 1

    store = CredentialStore(config.credentials_path)

    if args.clear_key:
        if store.clear(config.provider):
            logger.info(f"Cleared API key for {config.provider}")
        else:
            logger.info(f"No stored API key for {config.provider}")
    if args.set_key:
        store.set(config.provider, args.set_key)

    if not args.input_paths:
        if args.set_key or args.clear_key:
            return 0
        logger.error("No input files given")
        return 1

    if not store.has(config.provider):
        logger.error(
            f"No API key for {config.provider}. "
            f"Use --set-key or set the provider's API key environment variable."
        )
        return 1

    provider = create_provider(config)
    orchestrator = BatchOrchestrator(
        provider,
        credentials=lambda: store.get(config.provider),
        batch_size=config.batch_size,
        batch_delay=config.batch_delay,
    )
    queue = TaskQueueManager(orchestrator, listener=ProgressRenderer())

    paths = [Path(p).expanduser().resolve() for p in args.input_paths]
    tasks = await queue.enqueue_files(paths)
    source_dirs = {task.id: path.parent for task, path in zip(tasks, paths)}

    if args.prompt:
        queue.set_prompt_all(args.prompt)

    await queue.run_queue()

    failed = 0
    written: Set[Path] = set()
    for task in queue.tasks:
        if task.status is ProcessingStatus.COMPLETED:
            out_dir = config.output_dir or source_dirs[task.id]
            default_name = export_file_name(task, provider.export_prefix)
            name = unique_export_name(out_dir, default_name, written)
            if name != default_name:
                logger.warning(f"{default_name} already written to {out_dir}, saving as {name}")
            out_path = export_task(task, out_dir, provider.export_prefix, file_name=name)
            logger.info(f"Done: {task.file_name} -> {out_path}")
        else:
            failed += 1
            logger.error(f"Failed: {task.file_name}: {task.error or task.status.value}")

    logger.info(f"{len(queue.tasks) - failed}/{len(queue.tasks)} files translated")
    return 1 if failed else 0


def main() -> None:
    """CLI entry point."""
    args = parse_arguments()
    setup_logging(args.verbose)

    try:
        exit_code = asyncio.run(main_async(args))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        sys.exit(130)
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
