"""
SRT Queue Translator - translate subtitle files batch by batch with an LLM.

Features:
- Sequential multi-file queue with per-file status and progress
- Batches matched back to the original entries by id
- OpenAI and Gemini providers behind one interface
- Persistent per-provider API key store
"""

__version__ = "1.0.0"

from .models import SrtEntry, TranslationResult, FileTask, ProcessingStatus
from .errors import (
    TranslatorError,
    AuthenticationError,
    TransportError,
    RateLimitError,
    StructuralError,
    FormatError,
)
from .parser import parse_srt, parse_srt_strict, serialize_srt, save_srt, validate_srt_file
from .config import TranslatorConfig
from .credentials import CredentialStore
from .translator import TranslationProvider, OpenAIProvider, GeminiProvider, create_provider
from .orchestrator import BatchOrchestrator, partition_batches, merge_results, compute_progress
from .task_queue import TaskQueueManager, export_task

__all__ = [
    # Models
    "SrtEntry",
    "TranslationResult",
    "FileTask",
    "ProcessingStatus",
    "TranslatorConfig",
    # Errors
    "TranslatorError",
    "AuthenticationError",
    "TransportError",
    "RateLimitError",
    "StructuralError",
    "FormatError",
    # Codec
    "parse_srt",
    "parse_srt_strict",
    "serialize_srt",
    "save_srt",
    "validate_srt_file",
    # Credentials
    "CredentialStore",
    # Providers
    "TranslationProvider",
    "OpenAIProvider",
    "GeminiProvider",
    "create_provider",
    # Pipeline
    "BatchOrchestrator",
    "partition_batches",
    "merge_results",
    "compute_progress",
    "TaskQueueManager",
    "export_task",
]
