from __future__ import annotations


class CompressionError(Exception):
    """Base class for everything that can stop a file (or a batch) from compressing."""

    default_message = "Compression failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


# ----- Batch-fatal -----

class DirectoryCreationFailed(CompressionError):
    default_message = "Failed to create output directory"


# ----- Job-fatal (the file is dropped, the batch carries on) -----

class ProbeFailed(CompressionError):
    default_message = "Failed to read file size"


class DecodeFailed(CompressionError):
    default_message = "Failed to load image"


class BitmapConversionFailed(CompressionError):
    default_message = "Failed to create image representation"


class EncodeFailed(CompressionError):
    default_message = "Failed to write compressed image"
