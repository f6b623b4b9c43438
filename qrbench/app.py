"""qrbench command line entry point."""

import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional

from qrbench.analyzer import QrAnalyzer
from qrbench.config import AppConfig, config
from qrbench.errors import FileProcessingError, InputError
from qrbench.imaging.detector import QrBackend, build_engines
from qrbench.imaging.preprocess import PrepareOptions
from qrbench.io.indexer import IMAGE_EXTENSIONS, find_images
from qrbench.logging_setup import setup_logging
from qrbench.models import FileResult
from qrbench.pipeline import ImagePipeline
from qrbench.report import render_analysis_json, render_analysis_text, render_json, render_text
from qrbench.runner import ScanInterrupted, run_scan
from qrbench.stats import ResultAggregator

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INPUT = 2
EXIT_INTERRUPTED = 130


def get_version() -> str:
    try:
        return version("qrbench")
    except PackageNotFoundError:
        return "0.0.0+unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qrbench",
        description="QR code scanning and per-stage performance testing tool",
    )
    parser.add_argument("input", metavar="PATH", help="Image file or directory (scanned recursively)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show load times, decoded payloads and progress")
    parser.add_argument("-j", "--json", action="store_true", help="Output results as JSON")
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("-a", "--analyze", action="store_true",
                        help="Analyze QR detection failures in detail (single file only)")
    parser.add_argument("-w", "--workers", type=int, default=None,
                        help="Worker threads (default: from config, 0 = CPU count)")
    parser.add_argument("-e", "--engines", default=None, metavar="NAMES",
                        help="Comma-separated engines to compare per file, e.g. opencv,aruco "
                             "(default: from config; empty string disables)")
    parser.add_argument("-c", "--config", type=Path, default=None, help="Alternate INI config file")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {get_version()}")
    return parser


def load_app_config(path: Optional[Path]) -> AppConfig:
    if path is None:
        return config
    return AppConfig(path)


def prepare_options(cfg: AppConfig) -> PrepareOptions:
    return PrepareOptions(
        max_dimension=cfg.getint("prepare", "max_dimension", fallback=2000),
        adaptive_min_side=cfg.getint("prepare", "adaptive_min_side", fallback=100),
        adaptive_max_pixels=cfg.getint("prepare", "adaptive_max_pixels", fallback=10_000_000),
    )


def load_engines(args: argparse.Namespace, cfg: AppConfig) -> List[QrBackend]:
    """Raises ValueError for an unknown engine name."""
    if args.engines is not None:
        names = args.engines.split(",")
    else:
        names = cfg.getlist("detect", "engines")
    return build_engines(names)


def _print_progress(index: int, total: int, result: FileResult):
    state = f"{result.qr_count} QR" if result.success else "FAILED"
    print(f"[{index + 1}/{total}] {result.path} ({state}, {result.total * 1000.0:.2f}ms)",
          file=sys.stderr)


def _run_analyze(args: argparse.Namespace, options: PrepareOptions, color: bool) -> int:
    path = Path(args.input)
    if not path.exists():
        print(f"Error: Path does not exist: {path}", file=sys.stderr)
        return EXIT_INPUT
    if not path.is_file():
        print("Error: Analyze mode requires a single file, not a directory", file=sys.stderr)
        return EXIT_INPUT

    try:
        report = QrAnalyzer(options=options).analyze_file(path)
    except FileProcessingError as e:
        print(f"Error: Failed to analyze file: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.json:
        sys.stdout.write(render_analysis_json(report))
    else:
        sys.stdout.write(render_analysis_text(report, color=color))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Runs the benchmark and returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)
    log.info("QR code scanner starting")
    log.info("Input path: %s", args.input)

    cfg = load_app_config(args.config)
    options = prepare_options(cfg)
    color = sys.stdout.isatty() and not args.json

    if args.analyze:
        return _run_analyze(args, options, color)

    try:
        candidates = find_images(
            args.input,
            extensions=cfg.getlist("scan", "extensions") or IMAGE_EXTENSIONS,
            follow_links=cfg.getboolean("scan", "follow_links", fallback=True),
        )
    except InputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT

    try:
        engines = load_engines(args, cfg)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT

    workers = args.workers if args.workers is not None else cfg.getint("scan", "workers", fallback=0)
    pipeline = ImagePipeline(options=options, engines=engines)
    aggregator = ResultAggregator()
    exit_code = EXIT_OK
    try:
        run_scan(
            candidates,
            pipeline,
            aggregator,
            workers=workers,
            on_result=_print_progress if args.verbose and not args.json else None,
        )
    except ScanInterrupted as e:
        print(f"Interrupted: showing partial report for {len(e.aggregator)} of {len(candidates)} files",
              file=sys.stderr)
        exit_code = EXIT_INTERRUPTED

    stats = aggregator.finalize()
    results = aggregator.results
    if args.json:
        sys.stdout.write(render_json(results, stats))
    else:
        sys.stdout.write(render_text(
            results,
            stats,
            verbose=args.verbose,
            color=color,
            path_width=cfg.getint("report", "path_width", fallback=50),
            error_width=cfg.getint("report", "error_width", fallback=60),
        ))
    return exit_code


def cli():
    """CLI entry point."""
    try:
        code = main()
    except KeyboardInterrupt:
        code = EXIT_INTERRUPTED
    except Exception:
        log.exception("Unrecoverable error")
        code = EXIT_ERROR
    sys.exit(code)


if __name__ == "__main__":
    cli()
