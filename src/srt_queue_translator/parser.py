"""SRT file parsing and saving utilities."""

from __future__ import annotations

import re
import logging
from pathlib import Path
from typing import List, Sequence, Optional

from .errors import FormatError
from .models import SrtEntry

logger = logging.getLogger(__name__)

# Accepted input extensions (plain .txt files holding SRT text are common)
SUPPORTED_EXTENSIONS = {".srt", ".txt"}

MAX_FILE_SIZE = 50 * 1024 * 1024

_ENTRY_PATTERN = re.compile(
    r"(\d+)\s*\n"                                              # id
    r"\s*(\d{2}:\d{2}:\d{2}[,.]\d{3})\s*-->\s*"                # start
    r"(\d{2}:\d{2}:\d{2}[,.]\d{3})[^\n]*\n"                    # end (+ position tags)
    r"([\s\S]*?)(?=\n\s*\n\d+\s*\n|\n\s*\n\s*$|\s*$)"          # text
)


def parse_srt(content: str) -> List[SrtEntry]:
    """
    Parse SRT file content into list of SrtEntry objects.

    Multi-line cue text is kept with its line breaks so the file can be
    written back unchanged apart from the translated text.

    Args:
        content: Raw SRT file content as string

    Returns:
        List of parsed SrtEntry objects (empty when nothing matched)
    """
    if not content or not content.strip():
        return []

    content = content.replace('\r\n', '\n').replace('\r', '\n')
    content = content.strip() + '\n\n'

    entries: List[SrtEntry] = []

    for match in _ENTRY_PATTERN.finditer(content):
        idx, start, end, text = match.groups()
        clean_text = "\n".join(line.strip() for line in text.strip().splitlines() if line.strip())
        if clean_text:
            entries.append(SrtEntry(int(idx), start, end, clean_text))

    if not entries:
        logger.warning("No valid SRT entries found in content")

    return entries


def parse_srt_strict(content: str) -> List[SrtEntry]:
    """Like parse_srt, but raise FormatError when no entry is recognized."""
    entries = parse_srt(content)
    if not entries:
        raise FormatError("No valid subtitle entries found")
    return entries


def serialize_srt(entries: Sequence[SrtEntry]) -> str:
    """Render entries to SRT text, keeping every entry's original id."""
    return "".join(e.to_srt() for e in entries)


def validate_srt_file(path: Path) -> Optional[str]:
    """
    Validate subtitle file before processing.

    Returns:
        Error message if invalid, None if valid
    """
    if not path.exists():
        return f"File not found: {path}"

    if not path.is_file():
        return f"Not a file: {path}"

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        return f"Invalid file extension: {suffix} (expected .srt or .txt)"

    size = path.stat().st_size
    if size == 0:
        return "File is empty"
    if size > MAX_FILE_SIZE:
        return f"File too large: {size / 1024 / 1024:.1f}MB (max 50MB)"

    return None


def save_srt(entries: Sequence[SrtEntry], path: Path) -> None:
    """
    Save SrtEntry list to SRT file.

    Args:
        entries: Sequence of SrtEntry objects to save
        path: Output file path
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        f.write(serialize_srt(entries))

    logger.info(f"Saved {len(entries)} entries to {path}")
