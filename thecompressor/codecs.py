from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable, Dict

from PIL import Image
from pillow_heif import register_heif_opener

from .formats import OutputFormat
from .settings import pillow_quality


log = logging.getLogger(__name__)

# HEIC/HEIF inputs decode through pillow-heif
register_heif_opener()

# encode(bitmap, destination, quality 0.0-1.0) -> True if the file was written
CodecStrategy = Callable[[Image.Image, Path, float], bool]


def encode_lossy(im: Image.Image, out_path: Path, quality: float) -> bool:
    """
    Quality-driven encoder: render to memory first, then write in one go.

    Nothing is written when the encoder produces no data.
    """
    buf = io.BytesIO()
    try:
        im.save(buf, format=OutputFormat.WEBP.pillow_format, quality=pillow_quality(quality))
    except (OSError, ValueError) as exc:
        log.debug("WebP encode failed for %s: %s", out_path, exc)
        return False

    data = buf.getvalue()
    if not data:
        return False

    try:
        out_path.write_bytes(data)
    except OSError as exc:
        log.debug("Could not write %s: %s", out_path, exc)
        _discard(out_path)
        return False
    return True


def encode_native(im: Image.Image, out_path: Path, quality: float) -> bool:
    """
    Encoder that writes straight to the destination file.

    Fails without touching disk if Pillow has no encoder for the format,
    and removes the partial file if encoding breaks halfway.
    """
    fmt = OutputFormat.AVIF.pillow_format
    Image.init()
    if fmt not in Image.SAVE:
        log.debug("No %s encoder available in this Pillow build", fmt)
        return False

    try:
        im.save(out_path, format=fmt, quality=pillow_quality(quality))
    except (OSError, ValueError) as exc:
        log.debug("%s encode failed for %s: %s", fmt, out_path, exc)
        _discard(out_path)
        return False
    return True


STRATEGIES: Dict[OutputFormat, CodecStrategy] = {
    OutputFormat.WEBP: encode_lossy,
    OutputFormat.AVIF: encode_native,
}


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        log.debug("Could not remove partial output %s", path)
