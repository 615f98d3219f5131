"""Data models for chronosort extraction and organize results."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional


@dataclass
class DateResult:
    """Capture date extracted from a single file (read-only)."""
    filepath: Path
    taken: Optional[datetime] = None
    error: Optional[str] = None
    elapsed_ms: float = 0.0

    @property
    def found(self) -> bool:
        return self.taken is not None


@dataclass
class ProcessResult:
    """Result of organizing a single file."""
    source_path: Path
    dest_path: Optional[Path] = None
    action: str = "skipped"  # "copied" | "moved" | "compressed" | "skipped" | "no_date" | "dry_run"
    taken: Optional[datetime] = None
    source_deleted: bool = False
    file_size: int = 0
    process_time_ms: float = 0.0
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Result of a batch organize run."""
    results: List[ProcessResult] = field(default_factory=list)
    total_files: int = 0
    total_bytes: int = 0
    files_processed: int = 0
    files_copied: int = 0
    files_moved: int = 0
    files_compressed: int = 0
    files_skipped: int = 0
    files_without_date: int = 0
    files_deleted: int = 0
    files_errored: int = 0
    total_time_seconds: float = 0.0
