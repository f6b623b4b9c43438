"""Renders scan results as a text table or a JSON document.

Everything here returns strings; the caller decides where they go.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

from qrbench.models import AnalysisReport, EngineResult, FileResult
from qrbench.stats import SummaryStats
from qrbench.timer import Stage

_BOLD = "\x1b[1m"
_RED = "\x1b[31m"
_GREEN = "\x1b[32m"
_YELLOW = "\x1b[33m"
_BLUE = "\x1b[34m"
_CYAN = "\x1b[36m"
_DIM = "\x1b[2m"
_RESET = "\x1b[0m"

TIME_WIDTH = 12
QR_WIDTH = 5


def _style(text: str, code: str, color: bool) -> str:
    return f"{code}{text}{_RESET}" if color else text


def truncate_path(path: str, max_len: int) -> str:
    """Keeps the end of the path, which carries the file name."""
    if len(path) <= max_len:
        return path
    prefix = "..."
    available = max(max_len - len(prefix), 0)
    return prefix + (path[-available:] if available else "")


def elide(text: str, max_len: int) -> str:
    text = " ".join(text.split())
    if len(text) <= max_len:
        return text
    return text[:max(max_len - 3, 0)] + "..."


def _ms(seconds: Optional[float]) -> str:
    if seconds is None:
        return f"{'-':>{TIME_WIDTH}}"
    return f"{seconds * 1000.0:>{TIME_WIDTH - 2}.2f}ms"


def engine_row(engine: EngineResult, path_width: int, error_width: int, color: bool = False) -> str:
    """One verbose sub-row: the engine's distinct codes and its time over all variants."""
    label = f"  [{engine.engine}]"
    cells = [f"{label:<{path_width}}", f"{engine.qr_count:>{QR_WIDTH}}"]
    cells += [" " * TIME_WIDTH] * len(Stage)
    cells.append(_ms(engine.duration))
    row = _style(" ".join(cells).rstrip(), _DIM, color)
    if engine.error:
        row += "  " + _style(f"FAILED: {elide(engine.error, error_width)}", _RED, color)
    return row


def summary_line(stats: SummaryStats, color: bool = False) -> str:
    return (
        f"{_style('Stats:', _CYAN, color)}  "
        f"Total: {stats.total}  "
        f"Success: {_style(str(stats.success), _GREEN, color)}  "
        f"Failed: {_style(str(stats.failed), _RED, color)}  "
        f"With QR: {_style(str(stats.with_qr), _YELLOW, color)}  "
        f"Total QRs: {_style(str(stats.total_qr), _GREEN, color)}  "
        f"Avg Time: {stats.avg_ms:.2f}ms"
    )


def render_text(
    results: Sequence[FileResult],
    stats: SummaryStats,
    verbose: bool = False,
    color: bool = False,
    path_width: int = 50,
    error_width: int = 60,
) -> str:
    """Renders a fixed-width table, one row per file, then the summary line."""
    if not results:
        return "No image files found\n"

    columns = [f"{'File Path':<{path_width}}", f"{'QRs':>{QR_WIDTH}}"]
    columns += [f"{stage.label:>{TIME_WIDTH}}" for stage in Stage]
    columns.append(f"{'Total':>{TIME_WIDTH}}")
    if verbose:
        columns.append(f"{'Load':>{TIME_WIDTH}}")
    header = " ".join(columns)
    width = len(header)

    lines: List[str] = [
        "",
        _style("QR Code Detection Performance Test Results", _BOLD + _CYAN, color),
        _style("=" * width, _BLUE, color),
        _style(header, _YELLOW, color),
        "-" * width,
    ]

    for result in results:
        path = f"{truncate_path(result.path, path_width):<{path_width}}"
        if result.success:
            cells = [path, f"{result.qr_count:>{QR_WIDTH}}"]
            for stage in Stage:
                timing = result.timing_for(stage)
                cells.append(_ms(timing.duration if timing else None))
            cells.append(_ms(result.total))
            if verbose:
                cells.append(_ms(result.load_duration))
            lines.append(" ".join(cells))
            if verbose:
                for engine in result.engines:
                    lines.append(engine_row(engine, path_width, error_width, color))
                for payload in result.payloads:
                    lines.append(_style(f"    -> {elide(payload, error_width)}", _DIM, color))
        else:
            cells = [path, f"{'-':>{QR_WIDTH}}"]
            cells += [f"{'-':>{TIME_WIDTH}}"] * (len(Stage) + 1)
            if verbose:
                cells.append(_ms(result.load_duration))
            failure = _style(f"FAILED: {elide(result.error or '', error_width)}", _RED, color)
            lines.append(" ".join(cells) + "  " + failure)

    lines.append(_style("=" * width, _BLUE, color))
    lines.append("")
    lines.append(summary_line(stats, color))
    lines.append("")
    return "\n".join(lines)


def _round_ms(seconds: Optional[float]) -> Optional[float]:
    if seconds is None:
        return None
    return round(seconds * 1000.0, 3)


def engine_to_dict(engine: EngineResult) -> Dict[str, Any]:
    return {
        "name": engine.engine,
        "qr_count": engine.qr_count,
        "duration_ms": _round_ms(engine.duration),
        "payloads": list(engine.payloads),
        "error": engine.error,
    }


def result_to_dict(result: FileResult) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "path": result.path,
        "success": result.success,
        "qr_count": result.qr_count,
    }
    for stage in Stage:
        timing = result.timing_for(stage)
        entry[stage.json_key] = _round_ms(timing.duration) if timing else None
    entry["total_ms"] = _round_ms(result.total)
    entry["load_ms"] = _round_ms(result.load_duration)
    entry["payloads"] = list(result.payloads)
    entry["engines"] = [engine_to_dict(e) for e in result.engines]
    entry["error"] = result.error
    return entry


def summary_to_dict(stats: SummaryStats) -> Dict[str, Any]:
    return {
        "total": stats.total,
        "success": stats.success,
        "failed": stats.failed,
        "with_qr": stats.with_qr,
        "total_qr": stats.total_qr,
        "avg_ms": _round_ms(stats.avg_duration),
    }


def build_document(results: Sequence[FileResult], stats: SummaryStats) -> Dict[str, Any]:
    return {
        "results": [result_to_dict(r) for r in results],
        "summary": summary_to_dict(stats),
    }


def render_json(results: Sequence[FileResult], stats: SummaryStats) -> str:
    return json.dumps(build_document(results, stats), indent=2, ensure_ascii=False) + "\n"


# ---- Analyze mode ----

def analysis_to_dict(report: AnalysisReport) -> Dict[str, Any]:
    return {
        "file_path": report.file_path,
        "image_size": list(report.image_size),
        "variants_tested": report.variants_tested,
        "overall_success": report.overall_success,
        "variant_analyses": [
            {
                "variant": a.variant,
                "grids_detected": a.grids_detected,
                "success": a.success,
                "summary": a.summary,
                "decode_results": [
                    {
                        "grid_index": d.grid_index,
                        "decode_success": d.decode_success,
                        "content": d.content,
                        "error_detail": d.error_detail,
                    }
                    for d in a.decode_results
                ],
            }
            for a in report.variant_analyses
        ],
        "recommendations": list(report.recommendations),
    }


def render_analysis_json(report: AnalysisReport) -> str:
    return json.dumps(analysis_to_dict(report), indent=2, ensure_ascii=False) + "\n"


def render_analysis_text(report: AnalysisReport, color: bool = False) -> str:
    rule = _style("=" * 80, _CYAN, color)
    verdict = _style("SUCCESS", _GREEN + _BOLD, color) if report.overall_success \
        else _style("FAILED", _RED + _BOLD, color)
    lines = [
        "",
        rule,
        _style(" QR Code Debug Analysis Report ", _CYAN + _BOLD, color),
        rule,
        "",
        f"{_style('File', _YELLOW, color)}: {report.file_path}",
        f"{_style('Image Size', _YELLOW, color)}: {report.image_size[0]}x{report.image_size[1]} pixels",
        f"{_style('Variants Tested', _YELLOW, color)}: {report.variants_tested}",
        f"{_style('Overall Result', _YELLOW, color)}: {verdict}",
        "",
        "-" * 80,
        _style("Variant Analysis Details", _CYAN + _BOLD, color),
        "",
    ]

    for analysis in report.variant_analyses:
        mark = _style("OK", _GREEN, color) if analysis.success else _style("--", _RED, color)
        lines.append(f"> {_style(analysis.variant, _BOLD, color)} [{mark}]")
        lines.append(f"  Grids Detected: {analysis.grids_detected}")
        lines.append(f"  Summary: {analysis.summary}")
        for d in analysis.decode_results:
            lines.append(f"  Grid #{d.grid_index}:")
            if d.content is not None:
                lines.append(f"    {_style('Content', _GREEN, color)}: {elide(d.content, 100)}")
            if d.error_detail:
                lines.append(f"    {_style('Detail', _YELLOW, color)}: {d.error_detail}")
        lines.append("")

    if report.recommendations:
        lines.append("-" * 80)
        lines.append(_style("Recommendations", _CYAN + _BOLD, color))
        lines.append("")
        for i, rec in enumerate(report.recommendations, start=1):
            lines.append(f"{i}. {rec}")
        lines.append("")

    lines.append(rule)
    lines.append("")
    return "\n".join(lines)
