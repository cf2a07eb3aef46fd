from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Sequence

from .batch import BatchSummary
from .results import CompressedFile


@dataclass(frozen=True)
class FileReport:
    filename: str
    output_path: str
    original_size: int
    compressed_size: int
    saved_bytes: int
    savings_percent: int


@dataclass(frozen=True)
class BatchReport:
    created_utc: str
    summary: dict
    files: List[FileReport]


def build_report(results: Sequence[CompressedFile], summary: BatchSummary) -> BatchReport:
    created_utc = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    files: List[FileReport] = []
    for r in results:
        files.append(
            FileReport(
                filename=r.filename,
                output_path=str(r.output_path),
                original_size=r.original_size,
                compressed_size=r.compressed_size,
                saved_bytes=r.saved_bytes,
                savings_percent=r.savings_percent,
            )
        )

    summary_dict = {
        "total_jobs": summary.total_jobs,
        "completed": summary.completed,
        "failed": summary.failed,
        "saved_bytes": summary.saved_bytes,
        "saved": summary.formatted_saved,
    }

    return BatchReport(created_utc=created_utc, summary=summary_dict, files=files)


def save_report_json(report: BatchReport, path: Path) -> None:
    """Summary plus every file, pretty-printed so it diffs well."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    text = json.dumps(asdict(report), indent=2, ensure_ascii=False)
    path.write_text(text + "\n", encoding="utf-8")


def save_report_csv(report: BatchReport, path: Path) -> None:
    """One row per compressed file. The summary only goes in the JSON report."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    columns = [f.name for f in fields(FileReport)]
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns)
        writer.writeheader()
        for row in report.files:
            writer.writerow(asdict(row))
