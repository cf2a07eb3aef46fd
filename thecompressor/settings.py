from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .formats import OutputFormat


# Upper bound on files being compressed at the same time.
MAX_CONCURRENT = 10

DEFAULT_QUALITY = 0.8

# Overrides the Desktop as the place "Compressed Images" is created under.
BASE_DIR_ENV = "THECOMPRESSOR_BASE_DIR"


@dataclass(frozen=True)
class CompressSettings:
    """
    Knobs for one batch.

    Pure data object, same as the rest of the records: the CLI builds it,
    the pipeline reads it.
    """

    output_format: OutputFormat = OutputFormat.AVIF

    # 0.0 (smallest) .. 1.0 (best). Any value in range is accepted,
    # the 0.1 steps are a UI convention only.
    quality: float = DEFAULT_QUALITY

    # None -> the user's Desktop
    base_dir: Optional[Path] = None

    max_concurrent: int = MAX_CONCURRENT


def pillow_quality(quality: float) -> int:
    """Map 0.0-1.0 onto the 0-100 scale Pillow encoders take."""
    return max(0, min(100, int(round(quality * 100))))
