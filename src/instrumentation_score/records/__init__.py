"""Record store: per-job pipe-delimited record files."""

from instrumentation_score.records.codec_record_file import (
    ERROR_FILE_HEADER,
    RECORD_FILE_HEADER,
    RecordFileError,
    discover_job_files,
    format_record_line,
    parse_record_line,
    read_job_file,
    sanitize_job_name,
    write_error_file,
    write_job_files,
)

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
