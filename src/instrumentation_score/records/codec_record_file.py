# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Per-job record files.

One file per job, pipe-delimited, with an informational header line::

    JOB|METRIC_NAME|LABELS|CARDINALITY|LABEL_CARDINALITY
    api-service|http_requests_total|method,status|1500|method:12,status:5

``LABELS`` is comma-joined; ``LABEL_CARDINALITY`` is comma-joined
``name:count`` pairs in label order, or empty when absent.

Reading is the only input-validation boundary: malformed lines are dropped
(and logged), never fatal for the file.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TextIO

from pydantic import ValidationError

from instrumentation_score.collection.model_collection_error import (
    ModelCollectionError,
)
from instrumentation_score.collection.model_metric_record import ModelMetricRecord

logger = logging.getLogger(__name__)

RECORD_FILE_HEADER = "JOB|METRIC_NAME|LABELS|CARDINALITY|LABEL_CARDINALITY"
ERROR_FILE_HEADER = "TIMESTAMP|METRIC_NAME|OPERATION|ERROR"
RECORD_FILE_SUFFIX = ".txt"

_FIELD_SEPARATOR = "|"
_LIST_SEPARATOR = ","
_PAIR_SEPARATOR = ":"
_MIN_COLUMNS = 4
_LABEL_CARDINALITY_COLUMN = 4
_ERROR_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_FILE_MODE = 0o600

# Characters that are unsafe in file names on common filesystems
_UNSAFE_FILENAME_CHARS = str.maketrans({ch: "_" for ch in '/\\:*?"<>|'})


class RecordFileError(Exception):
    """Raised when a record file cannot be read or written at all."""


def sanitize_job_name(job: str) -> str:
    """Replace filesystem-unsafe characters in a job name with ``_``."""
    return job.translate(_UNSAFE_FILENAME_CHARS)


def format_record_line(record: ModelMetricRecord) -> str:
    """Serialize one record to a record-file line (without newline)."""
    label_cardinality = ""
    if record.label_cardinality:
        label_cardinality = _LIST_SEPARATOR.join(
            f"{label}{_PAIR_SEPARATOR}{record.label_cardinality[label]}"
            for label in record.labels
            if label in record.label_cardinality
        )
    return _FIELD_SEPARATOR.join(
        (
            record.job,
            record.metric_name,
            _LIST_SEPARATOR.join(record.labels),
            str(record.cardinality),
            label_cardinality,
        )
    )


def _parse_label_cardinality(raw: str) -> dict[str, int] | None:
    raw = raw.strip()
    if not raw:
        return None
    counts: dict[str, int] = {}
    for pair in raw.split(_LIST_SEPARATOR):
        name, sep, count = pair.partition(_PAIR_SEPARATOR)
        name = name.strip()
        if not sep or not name:
            continue
        try:
            counts[name] = int(count.strip())
        except ValueError:
            continue
    return counts or None


def parse_record_line(line: str) -> ModelMetricRecord | None:
    """Parse one record-file line.

    Returns:
        The record, or None for blank lines, ``#`` comments and malformed
        lines (too few columns, non-integer or negative cardinality, empty
        job or metric name).
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    parts = line.split(_FIELD_SEPARATOR)
    if len(parts) < _MIN_COLUMNS:
        return None

    try:
        cardinality = int(parts[3].strip())
    except ValueError:
        return None

    labels = tuple(
        label.strip() for label in parts[2].split(_LIST_SEPARATOR) if label.strip()
    )
    label_cardinality = None
    if len(parts) > _LABEL_CARDINALITY_COLUMN:
        label_cardinality = _parse_label_cardinality(parts[_LABEL_CARDINALITY_COLUMN])

    try:
        return ModelMetricRecord(
            job=parts[0].strip(),
            metric_name=parts[1].strip(),
            labels=labels,
            cardinality=cardinality,
            label_cardinality=label_cardinality,
        )
    except ValidationError:
        return None


def _is_header(line: str) -> bool:
    return line.strip().startswith("JOB|METRIC_NAME")


def read_job_file(path: str | Path) -> list[ModelMetricRecord]:
    """Load the records of one per-job file.

    A leading ``JOB|...`` header line is skipped.

    Raises:
        RecordFileError: If the file cannot be read.
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as exc:
        raise RecordFileError(f"Cannot read record file {str(path)!r}: {exc}") from exc

    start = 1 if lines and _is_header(lines[0]) else 0

    records: list[ModelMetricRecord] = []
    dropped = 0
    for line_number, line in enumerate(lines[start:], start=start + 1):
        record = parse_record_line(line)
        if record is not None:
            records.append(record)
        elif line.strip() and not line.lstrip().startswith("#"):
            dropped += 1
            logger.warning("Dropping malformed line %s:%d: %r", path, line_number, line)

    if dropped:
        logger.info("Loaded %d records from %s (%d lines dropped)", len(records), path, dropped)
    return records


def discover_job_files(directory: str | Path) -> list[Path]:
    """Return the record files (``*.txt``) in ``directory``, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        raise RecordFileError(f"Not a directory: {str(directory)!r}")
    return sorted(directory.glob(f"*{RECORD_FILE_SUFFIX}"))


def _open_private(path: Path) -> TextIO:
    fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, _FILE_MODE)
    return os.fdopen(fd, "w", encoding="utf-8")


def _unique_file_stem(job: str, used: set[str]) -> str:
    stem = sanitize_job_name(job)
    candidate = stem
    suffix = 2
    while candidate in used:
        candidate = f"{stem}_{suffix}"
        suffix += 1
    if candidate != stem:
        logger.warning(
            "Job %r maps to an existing file name %r, writing it as %r",
            job,
            stem + RECORD_FILE_SUFFIX,
            candidate + RECORD_FILE_SUFFIX,
        )
    used.add(candidate)
    return candidate


def write_job_files(
    output_dir: str | Path, records: Iterable[ModelMetricRecord]
) -> list[Path]:
    """Write one record file per job into ``output_dir``.

    A job whose file cannot be created is skipped with a warning; the other
    jobs are still written. Jobs whose sanitized names collide get a numeric
    suffix (``kube_state_2.txt``) instead of overwriting each other.

    Returns:
        Paths of the files written, in first-seen job order.
    """
    output_dir = Path(output_dir)
    by_job: dict[str, list[ModelMetricRecord]] = {}
    for record in records:
        by_job.setdefault(record.job, []).append(record)

    written: list[Path] = []
    skipped: list[str] = []
    used_stems: set[str] = set()
    for job, job_records in by_job.items():
        path = output_dir / f"{_unique_file_stem(job, used_stems)}{RECORD_FILE_SUFFIX}"
        try:
            with _open_private(path) as f:
                f.write(RECORD_FILE_HEADER + "\n")
                for record in job_records:
                    f.write(format_record_line(record) + "\n")
        except OSError as exc:
            skipped.append(job)
            logger.warning("Failed to write file for job %s (%s): %s", job, path, exc)
            continue
        written.append(path)

    if skipped:
        logger.warning("Skipped %d job(s) due to file creation errors", len(skipped))
    return written


def write_error_file(path: str | Path, errors: Sequence[ModelCollectionError]) -> Path:
    """Write collection soft errors as ``TIMESTAMP|METRIC_NAME|OPERATION|ERROR`` lines.

    Raises:
        RecordFileError: If the file cannot be written.
    """
    path = Path(path)
    try:
        with _open_private(path) as f:
            f.write(ERROR_FILE_HEADER + "\n")
            for error in errors:
                message = " ".join(error.message.splitlines())
                f.write(
                    _FIELD_SEPARATOR.join(
                        (
                            error.timestamp.strftime(_ERROR_TIMESTAMP_FORMAT),
                            error.metric_name,
                            error.operation.value,
                            message,
                        )
                    )
                    + "\n"
                )
    except OSError as exc:
        raise RecordFileError(f"Failed to create error file {str(path)!r}: {exc}") from exc
    return path


__all__ = [
    "ERROR_FILE_HEADER",
    "RECORD_FILE_HEADER",
    "RecordFileError",
    "discover_job_files",
    "format_record_line",
    "parse_record_line",
    "read_job_file",
    "sanitize_job_name",
    "write_error_file",
    "write_job_files",
]
