from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .errors import CompressionError
from .formats import OutputFormat


_UNITS = ("KB", "MB", "GB", "TB", "PB")
_DECIMALS = {"KB": 0, "MB": 1}


def format_byte_count(n: int) -> str:
    """
    Human-readable file size, decimal units like Finder shows them.

    800 -> "800 B", 12_345 -> "12 KB", 1_250_000 -> "1.2 MB", 3_000_000_000 -> "3 GB"
    """
    if abs(n) < 1000:
        return f"{n} B"

    value = float(n)
    for unit in _UNITS:
        value /= 1000
        decimals = _DECIMALS.get(unit, 2)
        # Compare after rounding so 999_999 reads "1 MB", not "1000 KB"
        if abs(round(value, decimals)) < 1000 or unit == _UNITS[-1]:
            break

    text = f"{value:.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {unit}"


@dataclass(frozen=True)
class CompressionJob:
    source: Path
    output_format: OutputFormat
    quality: float


@dataclass(frozen=True)
class CompressedFile:
    """
    One successfully compressed image.

    Only created once every stage of the job succeeded. Immutable, the
    result list owns it afterwards.
    """
    filename: str  # source basename, with extension
    original_size: int
    compressed_size: int
    output_path: Path
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def saved_bytes(self) -> int:
        # Negative when the encoder made the file bigger
        return self.original_size - self.compressed_size

    @property
    def savings_percent(self) -> int:
        if self.original_size <= 0:
            return 0
        return int(self.saved_bytes / self.original_size * 100)

    @property
    def formatted_saved_bytes(self) -> str:
        return format_byte_count(self.saved_bytes)


@dataclass(frozen=True)
class JobOutcome:
    job: CompressionJob
    result: Optional[CompressedFile] = None
    error: Optional[CompressionError] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


class CompressionQueue:
    """
    Result list shown to the user, newest first.

    Not thread-safe on purpose: the batch only touches it from the thread
    that drains completed jobs.
    """

    def __init__(self) -> None:
        self.compressed_files: List[CompressedFile] = []

    def add_compressed_file(self, file: CompressedFile) -> None:
        self.compressed_files.insert(0, file)

    def clear(self) -> None:
        self.compressed_files.clear()

    @property
    def total_saved_bytes(self) -> int:
        return sum(f.saved_bytes for f in self.compressed_files)

    @property
    def formatted_total_saved(self) -> str:
        return format_byte_count(self.total_saved_bytes)

    def __len__(self) -> int:
        return len(self.compressed_files)
