from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import pytest
from PIL import Image


@pytest.fixture
def make_image(tmp_path: Path):
    """Write a small generated image and return its path."""

    def _make(name: str, size: Tuple[int, int] = (64, 48), mode: str = "RGB", fmt: str | None = None) -> Path:
        path = tmp_path / "in" / name
        path.parent.mkdir(parents=True, exist_ok=True)

        im = Image.new(mode, size)
        # Gradient so encoders have something to chew on
        if mode in ("RGB", "RGBA"):
            px = im.load()
            for x in range(size[0]):
                for y in range(size[1]):
                    value = (x * 4 % 256, y * 5 % 256, (x + y) % 256)
                    px[x, y] = value if mode == "RGB" else value + (200,)
        im.save(path, format=fmt)
        return path

    return _make


class RecordingNotifier:
    def __init__(self, authorized: bool = True) -> None:
        self.authorized = authorized
        self.sent: List[Tuple[str, str]] = []

    def authorize(self) -> bool:
        return self.authorized

    def send(self, title: str, body: str) -> None:
        self.sent.append((title, body))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
