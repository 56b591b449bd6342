# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT
"""
Instrumentation Score CLI.

Collects the metric inventory of a Prometheus-compatible backend into
per-job record files, and scores those files against a rule document.

Usage:
    instrumentation-score collect --output-dir reports
    instrumentation-score collect --additional-query-filters 'cluster=~"prod.*"'
    instrumentation-score evaluate --job-file reports/job_metrics_*/api.txt
    instrumentation-score evaluate --job-dir reports/job_metrics_20251102_160000 \\
        --output text,json --json-file results.json --min-score 75

Environment:
    url, login, CONCURRENT_METRICS, CONCURRENT_JOBS,
    CONCURRENT_LABEL_CARDINALITY, RETRY_COUNT, REQUEST_TIMEOUT_SECONDS,
    LOG_LEVEL (see instrumentation_score.settings).

Exit Codes:
    0 - Success (collection soft errors do not fail the run)
    1 - Fatal error: configuration, evaluation or catalog fetch failure
    2 - Usage error
    130 - Collection interrupted (partial results are still written)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from instrumentation_score.clients.client_prometheus import PrometheusClient, redact_url
from instrumentation_score.clients.model_prometheus_client_config import (
    ModelPrometheusClientConfig,
)
from instrumentation_score.collection.collector_metrics import (
    CollectionCancelledError,
    CollectionError,
    MetricsCollector,
)
from instrumentation_score.collection.model_collection_result import (
    ModelCollectionResult,
)
from instrumentation_score.collection.model_collector_config import (
    ModelCollectorConfig,
)
from instrumentation_score.enums.enum_log_level import EnumLogLevel
from instrumentation_score.evaluation.model_evaluation import ModelExcludedJob
from instrumentation_score.evaluation.runner_evaluation import (
    evaluate_job,
    evaluate_jobs,
    load_job,
)
from instrumentation_score.formatters.formatter_json import format_json
from instrumentation_score.formatters.formatter_prometheus import (
    format_job_prometheus,
    format_report_prometheus,
)
from instrumentation_score.formatters.formatter_text import (
    format_job_text,
    format_report_text,
)
from instrumentation_score.records.codec_record_file import (
    RecordFileError,
    discover_job_files,
    write_error_file,
    write_job_files,
)
from instrumentation_score.rules.engine_rules import RuleEngine, RuleEvaluationError
from instrumentation_score.rules.loader_rules import RuleSetLoadError
from instrumentation_score.settings import CollectorSettings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130

OUTPUT_FORMATS = ("text", "json", "prometheus")
DEFAULT_RULES_PATH = "rules_config.yaml"
_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or greater, got {value}")
    return number


def _configure_logging(level: EnumLogLevel) -> None:
    logging.basicConfig(
        level=level.to_logging_level(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr,
    )


def _error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


# ---------------------------------------------------------------------------
# collect
# ---------------------------------------------------------------------------


async def _collect(
    client_config: ModelPrometheusClientConfig,
    collector_config: ModelCollectorConfig,
) -> ModelCollectionResult:
    """Run one collection, cancelling it on SIGINT/SIGTERM."""
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def handle_signal(sig_name: str) -> None:
        logger.warning("Received %s, cancelling collection", sig_name)
        cancel_event.set()

    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_signal, sig.name)
        except (NotImplementedError, RuntimeError):
            continue
        installed.append(sig)

    try:
        async with PrometheusClient(client_config) as client:
            collector = MetricsCollector(
                client, collector_config, cancel_event=cancel_event
            )
            return await collector.collect()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def _write_collection(
    result: ModelCollectionResult, job_dir: Path, error_file: Path
) -> None:
    print("Writing per-job reports...")
    written = write_job_files(job_dir, result.records)
    print(f"Generated {len(written)} per-job files in {job_dir}/")

    if result.errors:
        print(f"WARNING: Encountered {len(result.errors)} errors during processing")
        try:
            write_error_file(error_file, result.errors)
        except RecordFileError as exc:
            print(f"WARNING: {exc}")
        else:
            print(f"Error report saved to {error_file}")
    else:
        print("No errors encountered!")


def run_collect(args: argparse.Namespace, settings: CollectorSettings) -> int:
    """Run the ``collect`` subcommand."""
    try:
        client_config = settings.to_client_config(retry_count=args.retry_failures_count)
        collector_config = settings.to_collector_config(
            query_filters=args.additional_query_filters,
            concurrent_metrics=args.concurrent_metrics,
            concurrent_jobs=args.concurrent_jobs,
            concurrent_label_cardinality=args.concurrent_label_cardinality,
            collect_label_cardinality=args.collect_label_cardinality,
        )
    except (ValueError, ValidationError) as exc:
        _error(str(exc))
        return EXIT_ERROR

    timestamp = datetime.now().strftime(_TIMESTAMP_FORMAT)
    output_dir = Path(args.output_dir)
    job_dir = output_dir / f"job_metrics_{timestamp}"
    error_file = output_dir / f"metrics_errors_{timestamp}.txt"
    try:
        job_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as exc:
        _error(f"Failed to create output directory: {exc}")
        return EXIT_ERROR

    print("Starting Prometheus metrics analysis...")
    print(f"Prometheus URL: {redact_url(client_config.base_url)}")
    if collector_config.query_filters:
        print(f"Query filters: {collector_config.query_filters}")
    print(f"Retry count: {client_config.max_retries}")
    print(f"Output directory: {job_dir}")
    print()

    try:
        result = asyncio.run(_collect(client_config, collector_config))
    except CollectionError as exc:
        _error(str(exc))
        return EXIT_ERROR
    except CollectionCancelledError as exc:
        print("Collection interrupted; writing partial results.", file=sys.stderr)
        _write_collection(exc.partial, job_dir, error_file)
        print(exc.partial.summary())
        return EXIT_INTERRUPTED

    _write_collection(result, job_dir, error_file)
    print(result.summary())
    print("\nAnalysis complete!")
    return EXIT_OK


# ---------------------------------------------------------------------------
# evaluate
# ---------------------------------------------------------------------------


def _parse_output_formats(raw: str) -> list[str]:
    formats = [part.strip() for part in raw.split(",") if part.strip()]
    return formats or ["text"]


def _validate_evaluate_args(args: argparse.Namespace, formats: list[str]) -> str | None:
    """Return a usage error message, or None if the arguments are consistent."""
    for fmt in formats:
        if fmt not in OUTPUT_FORMATS:
            return f"Unknown output format: {fmt}. Valid formats: {', '.join(OUTPUT_FORMATS)}"
    if "json" in formats and not args.json_file and "text" not in formats:
        return "--json-file is required when using --output json (or include 'text')"
    if "prometheus" in formats and not args.prometheus_file and "text" not in formats:
        return (
            "--prometheus-file is required when using --output prometheus "
            "(or include 'text')"
        )
    if args.show_costs and (args.cost_unit_price is None or args.cost_unit_price <= 0):
        return "--cost-unit-price must be greater than 0 when --show-costs is enabled"
    return None


def _emit(content: str, path: str | None, label: str) -> None:
    if path:
        Path(path).write_text(content, encoding="utf-8")
        print(f"{label} saved to {path}")
    else:
        print(content, end="" if content.endswith("\n") else "\n")


def _evaluate_single(
    args: argparse.Namespace,
    engine: RuleEngine,
    formats: list[str],
    cost_unit_price: float | None,
) -> int:
    job, records = load_job(args.job_file)
    evaluation = evaluate_job(engine, job, records, cost_unit_price=cost_unit_price)

    if isinstance(evaluation, ModelExcludedJob):
        print(f"Job {job} is excluded from evaluation ({evaluation.reason.value})")
        if "json" in formats:
            _emit(format_json(evaluation), args.json_file, "JSON report")
        return EXIT_OK

    for fmt in formats:
        if fmt == "text":
            print(
                format_job_text(
                    evaluation,
                    show_costs=args.show_costs,
                    show_failures=args.show_failures,
                )
            )
        elif fmt == "json":
            _emit(format_json(evaluation), args.json_file, "JSON report")
        elif fmt == "prometheus":
            _emit(format_job_prometheus(evaluation), args.prometheus_file, "Prometheus metrics")
    return EXIT_OK


def _evaluate_all(
    args: argparse.Namespace,
    engine: RuleEngine,
    formats: list[str],
    cost_unit_price: float | None,
) -> int:
    paths = discover_job_files(args.job_dir)
    if not paths:
        _error(f"No job metric files found in {args.job_dir}")
        return EXIT_ERROR

    print(f"Found {len(paths)} job files to evaluate...")
    report = evaluate_jobs(engine, paths, cost_unit_price=cost_unit_price)

    if report.excluded_job_count:
        print(
            f"Excluded {report.excluded_job_count} job(s) based on exclusion_list "
            f"in {args.rules}"
        )
    if not report.jobs:
        _error("No jobs were successfully evaluated")
        return EXIT_ERROR

    for fmt in formats:
        if fmt == "text":
            print(
                format_report_text(
                    report,
                    min_score=args.min_score,
                    show_costs=args.show_costs,
                    show_failures=args.show_failures,
                )
            )
        elif fmt == "json":
            _emit(format_json(report), args.json_file, "JSON report")
        elif fmt == "prometheus":
            _emit(format_report_prometheus(report), args.prometheus_file, "Prometheus metrics")
    return EXIT_OK


def run_evaluate(args: argparse.Namespace) -> int:
    """Run the ``evaluate`` subcommand."""
    formats = _parse_output_formats(args.output)
    usage_error = _validate_evaluate_args(args, formats)
    if usage_error:
        _error(usage_error)
        return EXIT_USAGE
    cost_unit_price = args.cost_unit_price if args.show_costs else None

    try:
        engine = RuleEngine.from_file(args.rules)
    except RuleSetLoadError as exc:
        _error(f"Failed to load rules from {args.rules}")
        for issue in exc.issues:
            print(f"  {issue}", file=sys.stderr)
        return EXIT_ERROR

    try:
        if args.job_file:
            return _evaluate_single(args, engine, formats, cost_unit_price)
        return _evaluate_all(args, engine, formats, cost_unit_price)
    except RecordFileError as exc:
        _error(str(exc))
        return EXIT_ERROR
    except RuleEvaluationError as exc:
        _error(str(exc))
        return EXIT_ERROR
    except OSError as exc:
        _error(f"Failed to write output: {exc}")
        return EXIT_ERROR


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="instrumentation-score",
        description="Score the instrumentation quality of Prometheus metrics per job",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        type=EnumLogLevel,
        choices=list(EnumLogLevel),
        default=None,
        help="Log level (default: LOG_LEVEL environment variable or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    collect = subparsers.add_parser(
        "collect",
        help="Collect per-job metric records from the backend",
        description="Collect per-job metric records from a Prometheus-compatible backend",
    )
    collect.add_argument(
        "--output-dir",
        "-o",
        default=".",
        help="Output directory for report files (default: current directory)",
    )
    collect.add_argument(
        "--additional-query-filters",
        default="",
        metavar="FILTERS",
        help="PromQL label filters, e.g. 'cluster=~\"prod.*\",environment=\"production\"'",
    )
    collect.add_argument(
        "--retry-failures-count",
        type=_non_negative_int,
        default=None,
        metavar="N",
        help="Retry attempts for transient failures (default: RETRY_COUNT or 2)",
    )
    collect.add_argument(
        "--concurrent-metrics",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Metrics processed concurrently (default: CONCURRENT_METRICS or 5)",
    )
    collect.add_argument(
        "--concurrent-jobs",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Jobs per metric processed concurrently (default: CONCURRENT_JOBS or 3)",
    )
    collect.add_argument(
        "--concurrent-label-cardinality",
        type=_positive_int,
        default=None,
        metavar="N",
        help=(
            "Per-label cardinality calls in flight "
            "(default: CONCURRENT_LABEL_CARDINALITY or 50)"
        ),
    )
    collect.add_argument(
        "--collect-label-cardinality",
        action="store_true",
        help="Also collect per-label value counts (cardinality analysis API)",
    )

    evaluate = subparsers.add_parser(
        "evaluate",
        help="Evaluate job record files against the rules",
        description="Evaluate one job file or a directory of job files against the rules",
    )
    evaluate.add_argument(
        "--rules",
        "-r",
        default=DEFAULT_RULES_PATH,
        help=f"Rules configuration file (default: {DEFAULT_RULES_PATH})",
    )
    source = evaluate.add_mutually_exclusive_group(required=True)
    source.add_argument("--job-file", "-j", help="Evaluate a single job file")
    source.add_argument("--job-dir", "-d", help="Evaluate all job files in a directory")
    evaluate.add_argument(
        "--output",
        "-o",
        default="text",
        help=f"Output formats, comma-separated: {','.join(OUTPUT_FORMATS)} (default: text)",
    )
    evaluate.add_argument("--json-file", help="JSON output file path")
    evaluate.add_argument("--prometheus-file", help="Prometheus metrics output file path")
    evaluate.add_argument(
        "--min-score",
        type=float,
        default=0.0,
        help="Minimum score threshold; jobs below it are listed",
    )
    evaluate.add_argument(
        "--show-failures",
        action="store_true",
        help="Show failing metrics",
    )
    evaluate.add_argument(
        "--show-costs",
        action="store_true",
        help="Show estimated monthly costs (requires --cost-unit-price)",
    )
    evaluate.add_argument(
        "--cost-unit-price",
        type=float,
        default=None,
        help="Cost per active series per month",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Command line arguments (uses sys.argv if None).

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings: CollectorSettings | None = None
    settings_error = ""
    try:
        settings = CollectorSettings()
    except ValidationError as exc:
        settings_error = str(exc)

    default_level = settings.log_level if settings is not None else EnumLogLevel.INFO
    _configure_logging(args.log_level or default_level)

    if args.command == "collect":
        if settings is None:
            _error(f"Invalid environment configuration: {settings_error}")
            return EXIT_ERROR
        return run_collect(args, settings)
    return run_evaluate(args)


if __name__ == "__main__":
    sys.exit(main())
