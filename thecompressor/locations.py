from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from .errors import DirectoryCreationFailed
from .formats import OutputFormat


log = logging.getLogger(__name__)

OUTPUT_ROOT_NAME = "Compressed Images"


def default_base_dir() -> Path:
    """The user's Desktop, where the original app drops its output."""
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise DirectoryCreationFailed("Could not locate the home directory") from exc
    return home / "Desktop"


def output_dir_for(fmt: OutputFormat, base_dir: Optional[Path] = None) -> Path:
    base = Path(base_dir) if base_dir is not None else default_base_dir()
    return base / OUTPUT_ROOT_NAME / fmt.value


def resolve_output_dir(fmt: OutputFormat, base_dir: Optional[Path] = None) -> Path:
    """
    Return <base>/Compressed Images/<format>, creating it if needed.

    Safe to call when the folder already exists. Raises DirectoryCreationFailed
    when it can't be created, which aborts the whole batch.
    """
    folder = output_dir_for(fmt, base_dir)
    try:
        folder.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreationFailed(f"Failed to create output directory {folder}") from exc
    return folder


# ----- Shell helpers (best effort, nothing returned) -----

def reveal_in_file_manager(path: Path) -> None:
    """Show a compressed file selected in Finder / Explorer, or its folder elsewhere."""
    path = Path(path)
    if sys.platform == "darwin":
        command = ["open", "-R", str(path)]
    elif sys.platform.startswith("win"):
        command = ["explorer", f"/select,{path}"]
    else:
        command = ["xdg-open", str(path.parent)]
    _launch(command)


def open_output_folder(fmt: OutputFormat, base_dir: Optional[Path] = None) -> None:
    folder = output_dir_for(fmt, base_dir)
    if sys.platform == "darwin":
        command = ["open", str(folder)]
    elif sys.platform.startswith("win"):
        command = ["explorer", str(folder)]
    else:
        command = ["xdg-open", str(folder)]
    _launch(command)


def _launch(command: List[str]) -> None:
    try:
        subprocess.Popen(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError as exc:
        log.warning("Could not run %s: %s", command[0], exc)
