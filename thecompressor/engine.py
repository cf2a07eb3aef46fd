from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

from PIL import Image, ImageOps

from .codecs import STRATEGIES, CodecStrategy
from .errors import (
    BitmapConversionFailed,
    CompressionError,
    DecodeFailed,
    EncodeFailed,
    ProbeFailed,
)
from .formats import OutputFormat
from .results import CompressedFile, CompressionJob, JobOutcome


log = logging.getLogger(__name__)

# Modes the encoders take as-is; everything else is converted first.
_ENCODABLE_MODES = {"RGB", "RGBA"}


def file_size(p: Path) -> int:
    try:
        return p.stat().st_size
    except OSError as exc:
        raise ProbeFailed(f"Failed to read size of {p.name}") from exc


def build_output_path(src_path: Path, output_dir: Path, job: CompressionJob) -> Path:
    # No collision handling: x.png and x.jpeg both land on x.<ext>
    return output_dir / f"{src_path.stem}.{job.output_format.file_extension}"


def compress_single(
    job: CompressionJob,
    output_dir: Path,
    strategies: Optional[Mapping[OutputFormat, CodecStrategy]] = None,
) -> CompressedFile:
    """
    Run one job start to finish.

    probe -> decode -> bitmap -> encode -> probe. Each stage raises its own
    CompressionError subclass and nothing after it runs.
    """
    src_path = Path(job.source)
    strategies = STRATEGIES if strategies is None else strategies

    original_size = file_size(src_path)

    im = _decode(src_path)
    try:
        bitmap = _to_bitmap(im)

        out_path = build_output_path(src_path, output_dir, job)

        encode: CodecStrategy = strategies[job.output_format]
        if not encode(bitmap, out_path, job.quality):
            raise EncodeFailed(f"Failed to write {out_path.name}")
    finally:
        im.close()

    compressed_size = file_size(out_path)

    return CompressedFile(
        filename=src_path.name,
        original_size=original_size,
        compressed_size=compressed_size,
        output_path=out_path.resolve(),
    )


def run_job(
    job: CompressionJob,
    output_dir: Path,
    strategies: Optional[Mapping[OutputFormat, CodecStrategy]] = None,
) -> JobOutcome:
    """Worker entry point. Never raises for a bad file, the failure rides along in the outcome."""
    try:
        result = compress_single(job, output_dir, strategies)
    except CompressionError as exc:
        log.info("Skipping %s: %s", job.source, exc)
        return JobOutcome(job=job, error=exc)

    log.debug(
        "Compressed %s: %d -> %d bytes",
        result.filename,
        result.original_size,
        result.compressed_size,
    )
    return JobOutcome(job=job, result=result)


def _decode(src_path: Path) -> Image.Image:
    try:
        im = Image.open(src_path)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise DecodeFailed(f"Failed to load {src_path.name}") from exc

    try:
        im.load()
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        im.close()
        raise DecodeFailed(f"Failed to load {src_path.name}") from exc
    return im


def _to_bitmap(im: Image.Image) -> Image.Image:
    try:
        # Bake the EXIF rotation in, the encoders don't carry the tag over
        im = ImageOps.exif_transpose(im)

        if im.mode in _ENCODABLE_MODES:
            return im
        if _has_alpha(im):
            return im.convert("RGBA")
        return im.convert("RGB")
    except (OSError, ValueError, SyntaxError) as exc:
        raise BitmapConversionFailed() from exc


def _has_alpha(im: Image.Image) -> bool:
    if im.mode in ("RGBA", "LA", "PA"):
        return True
    if im.mode == "P" and "transparency" in im.info:
        return True
    return False
