from __future__ import annotations

from enum import Enum


# Input extensions the pipeline will schedule. Anything else is dropped
# before a job is created.
SUPPORTED_EXTS = {".jpg", ".jpeg", ".png", ".heic", ".heif", ".webp", ".tiff", ".bmp", ".gif"}


class OutputFormat(str, Enum):
    AVIF = "avif"
    WEBP = "webp"

    @property
    def display_name(self) -> str:
        return self.value.upper()

    @property
    def file_extension(self) -> str:
        return self.value

    @property
    def type_identifier(self) -> str:
        return _TYPE_IDENTIFIERS[self]

    @property
    def pillow_format(self) -> str:
        # Name of the encoder Pillow registers in Image.SAVE
        return _PILLOW_FORMATS[self]


_TYPE_IDENTIFIERS = {
    OutputFormat.AVIF: "public.avif",
    OutputFormat.WEBP: "org.webmproject.webp",
}

_PILLOW_FORMATS = {
    OutputFormat.AVIF: "AVIF",
    OutputFormat.WEBP: "WEBP",
}
