from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .batch import compress_images, expand_inputs
from .errors import DirectoryCreationFailed
from .formats import OutputFormat
from .locations import open_output_folder, reveal_in_file_manager
from .notify import ConsoleNotifier, DesktopNotifier, Notifier
from .report import build_report, save_report_csv, save_report_json
from .results import CompressionQueue
from .settings import BASE_DIR_ENV, DEFAULT_QUALITY, CompressSettings


def _parse_quality(text: str) -> float:
    """Accept 0.0-1.0, e.g. "0.8" or ".35"."""
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}")
    if not 0.0 <= value <= 1.0:
        raise argparse.ArgumentTypeError("quality must be between 0.0 and 1.0")
    return value


def _base_dir(arg: Optional[str]) -> Optional[Path]:
    if arg:
        return Path(arg).expanduser()
    env = os.environ.get(BASE_DIR_ENV)
    if env:
        return Path(env).expanduser()
    return None


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="thecompressor",
        description="Batch-compress images to AVIF or WebP",
    )
    p.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    sub = p.add_subparsers(dest="command", required=True)

    formats = [f.value for f in OutputFormat]

    comp = sub.add_parser("compress", help="Compress image files and/or folders")
    comp.add_argument("inputs", nargs="+", help="Files and/or folders to compress")
    comp.add_argument("--format", choices=formats, default=OutputFormat.AVIF.value, help="Output format (default: avif)")
    comp.add_argument(
        "--quality",
        type=_parse_quality,
        default=DEFAULT_QUALITY,
        help=f"Quality 0.0-1.0 (default: {DEFAULT_QUALITY})",
    )
    comp.add_argument("--base-dir", default=None, help=f"Where 'Compressed Images' is created (default: ${BASE_DIR_ENV} or ~/Desktop)")
    comp.add_argument("--recursive", action="store_true", help="Scan folders recursively")

    note = comp.add_mutually_exclusive_group()
    note.add_argument("--no-notify", action="store_true", help="Do not print the completion summary")
    note.add_argument("--desktop-notify", action="store_true", help="Send the summary as a desktop notification")

    comp.add_argument("--report", default=None, help="Write report.json and report.csv to this folder")
    comp.add_argument("--reveal", action="store_true", help="Reveal the most recent result in the file manager")

    folder = sub.add_parser("open-folder", help="Open the output folder for a format")
    folder.add_argument("--format", choices=formats, default=OutputFormat.AVIF.value)
    folder.add_argument("--base-dir", default=None)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command == "compress":
        inputs = list(expand_inputs([Path(p) for p in args.inputs], recursive=bool(args.recursive)))

        settings = CompressSettings(
            output_format=OutputFormat(args.format),
            quality=float(args.quality),
            base_dir=_base_dir(args.base_dir),
        )

        notifier: Optional[Notifier] = None
        if args.desktop_notify:
            notifier = DesktopNotifier()
        elif not args.no_notify:
            notifier = ConsoleNotifier()

        queue = CompressionQueue()
        try:
            summary = compress_images(inputs, settings, sink=queue, notifier=notifier)
        except DirectoryCreationFailed as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1

        for f in queue.compressed_files:
            print(f"{f.filename:<40} {f.formatted_saved_bytes:>10} ({f.savings_percent}%)  -> {f.output_path}")

        print(f"\nCompressed: {summary.completed} of {summary.total_jobs}")
        print(f"Saved     : {summary.formatted_saved}")

        if args.report:
            report = build_report(queue.compressed_files, summary)
            report_dir = Path(args.report)

            json_path = report_dir / "report.json"
            save_report_json(report, json_path)

            csv_path = report_dir / "report.csv"
            save_report_csv(report, csv_path)

            print("\nReport written:", json_path)
            print("CSV written   :", csv_path)

        if args.reveal and queue.compressed_files:
            reveal_in_file_manager(queue.compressed_files[0].output_path)

        return 0

    if args.command == "open-folder":
        open_output_folder(OutputFormat(args.format), _base_dir(args.base_dir))
        return 0

    parser.print_help()
    return 2
