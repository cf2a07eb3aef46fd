from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from typing import Optional, Protocol, TextIO

from .results import format_byte_count


log = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Compression Complete"


class Notifier(Protocol):
    def authorize(self) -> bool: ...

    def send(self, title: str, body: str) -> None: ...


def completion_message(completed: int, saved_bytes: int) -> str:
    noun = "image" if completed == 1 else "images"
    return f"{completed} {noun} compressed. Saved {format_byte_count(saved_bytes)}."


def notify_completion(notifier: Optional[Notifier], completed: int, saved_bytes: int) -> bool:
    """
    Send the one summary notification for a batch.

    Returns True if it was handed to the notifier. Nothing is sent for an
    empty batch, and a misbehaving notifier never fails the batch.
    """
    if notifier is None or completed <= 0:
        return False

    try:
        if not notifier.authorize():
            log.info("Notifications not authorized, skipping summary")
            return False
        notifier.send(NOTIFICATION_TITLE, completion_message(completed, saved_bytes))
    except Exception:
        log.warning("Completion notification failed", exc_info=True)
        return False
    return True


class ConsoleNotifier:
    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream

    def authorize(self) -> bool:
        return True

    def send(self, title: str, body: str) -> None:
        print(f"{title}: {body}", file=self.stream or sys.stdout)


class DesktopNotifier:
    """OS notification through osascript (macOS) or notify-send (Linux)."""

    def __init__(self) -> None:
        self._tool = "osascript" if sys.platform == "darwin" else "notify-send"

    def authorize(self) -> bool:
        if sys.platform.startswith("win"):
            return False
        return shutil.which(self._tool) is not None

    def send(self, title: str, body: str) -> None:
        if self._tool == "osascript":
            script = f"display notification {_applescript_str(body)} with title {_applescript_str(title)}"
            command = ["osascript", "-e", script]
        else:
            command = ["notify-send", title, body]
        subprocess.run(command, check=True, capture_output=True, timeout=10)


def _applescript_str(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
