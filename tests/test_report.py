"""Tests for text and JSON rendering."""

import json

import pytest

from qrbench.models import EngineResult, FileResult
from qrbench.report import build_document, elide, render_json, render_text, truncate_path
from qrbench.stats import ResultAggregator

from conftest import make_failure, make_success, make_timings


def _finalized(results):
    agg = ResultAggregator()
    for r in results:
        agg.accumulate(r)
    return agg.results, agg.finalize()


def test_text_table_columns_and_values():
    results, stats = _finalized([make_success("dir/a.png", qr_count=1, ms=(1.5, 2.25, 3.0, 0.125))])
    text = render_text(results, stats)
    header = next(line for line in text.splitlines() if line.startswith("File Path"))
    positions = [header.index(col) for col in ("File Path", "QRs", "Grayscale", "Prepare", "Detect", "Decode", "Total")]
    assert positions == sorted(positions)
    row = next(line for line in text.splitlines() if line.startswith("dir/a.png"))
    assert "1.50ms" in row
    assert "2.25ms" in row
    assert "0.12ms" in row or "0.13ms" in row
    assert "6.88ms" in row or "6.87ms" in row


def test_failed_row_shows_marker_and_error():
    results, stats = _finalized([make_failure("bad.png", "Failed to decode image: bad.png: truncated")])
    text = render_text(results, stats)
    row = next(line for line in text.splitlines() if line.startswith("bad.png"))
    assert "FAILED: Failed to decode image" in row
    assert "ms" not in row.split("FAILED")[0]


def test_long_error_is_elided():
    results, stats = _finalized([make_failure("bad.png", "x" * 500)])
    text = render_text(results, stats, error_width=40)
    row = next(line for line in text.splitlines() if line.startswith("bad.png"))
    assert row.endswith("...")
    assert "x" * 41 not in row


def test_summary_line():
    results, stats = _finalized([make_success(qr_count=2), make_failure()])
    text = render_text(results, stats)
    assert "Total: 2  Success: 1  Failed: 1  With QR: 1  Total QRs: 2  Avg Time: 10.00ms" in text


def test_empty_results():
    results, stats = _finalized([])
    assert render_text(results, stats).strip() == "No image files found"


def test_verbose_adds_load_column_and_payloads():
    results, stats = _finalized([make_success(qr_count=1, payloads=("hello",))])
    plain = render_text(results, stats)
    verbose = render_text(results, stats, verbose=True)
    assert "Load" not in plain
    assert "Load" in verbose
    assert "-> hello" in verbose


def test_color_only_when_requested():
    results, stats = _finalized([make_success()])
    assert "\x1b[" not in render_text(results, stats)
    assert "\x1b[" in render_text(results, stats, color=True)


def test_truncate_path_keeps_file_name():
    path = "/very/long/directory/structure/that/goes/on/and/on/image_0001.png"
    short = truncate_path(path, 20)
    assert len(short) == 20
    assert short.startswith("...")
    assert short.endswith("image_0001.png")
    assert truncate_path("a.png", 20) == "a.png"


def test_elide_collapses_whitespace():
    assert elide("a\nb   c", 10) == "a b c"
    assert elide("abcdefghijkl", 8) == "abcde..."


def test_json_document_shape():
    results, stats = _finalized([
        make_success("a.png", qr_count=1, ms=(1.0, 2.0, 3.0, 4.0), payloads=("TEST",)),
        make_failure("b.png", "Failed to read file: b.png"),
    ])
    doc = json.loads(render_json(results, stats))
    assert set(doc) == {"results", "summary"}
    ok, bad = doc["results"]
    assert ok == {
        "path": "a.png",
        "success": True,
        "qr_count": 1,
        "grayscale_ms": 1.0,
        "prepare_ms": 2.0,
        "detect_ms": 3.0,
        "decode_ms": 4.0,
        "total_ms": 10.0,
        "load_ms": None,
        "payloads": ["TEST"],
        "engines": [],
        "error": None,
    }
    assert bad["success"] is False
    assert bad["error"] == "Failed to read file: b.png"
    assert bad["grayscale_ms"] is None
    assert bad["total_ms"] == 0.0
    assert doc["summary"] == {
        "total": 2, "success": 1, "failed": 1, "with_qr": 1, "total_qr": 1, "avg_ms": 10.0,
    }


def test_json_durations_are_numbers():
    results, stats = _finalized([make_success(ms=(0.1234, 0.5, 0.25, 0.125))])
    entry = build_document(results, stats)["results"][0]
    for key in ("grayscale_ms", "prepare_ms", "detect_ms", "decode_ms", "total_ms"):
        assert isinstance(entry[key], float)
    assert entry["grayscale_ms"] == pytest.approx(0.123)


def _with_engines():
    engines = (
        EngineResult("opencv", payloads=("TEST",), duration=0.0125),
        EngineResult("aruco", duration=0.004, error="aruco failed: bad input"),
    )
    return _finalized([make_success("a.png", qr_count=1, payloads=("TEST",), engines=engines)])


def test_verbose_lists_one_row_per_engine():
    results, stats = _with_engines()
    plain = render_text(results, stats)
    lines = render_text(results, stats, verbose=True).splitlines()
    assert "[opencv]" not in plain

    opencv = next(line for line in lines if "[opencv]" in line)
    aruco = next(line for line in lines if "[aruco]" in line)
    assert lines.index(opencv) < lines.index(aruco)
    assert opencv.split()[1] == "1"
    assert opencv.rstrip().endswith("12.50ms")
    assert aruco.split()[1] == "0"
    assert "FAILED: aruco failed: bad input" in aruco


def test_json_engines_array():
    results, stats = _with_engines()
    entry = json.loads(render_json(results, stats))["results"][0]
    assert entry["engines"] == [
        {"name": "opencv", "qr_count": 1, "duration_ms": 12.5, "payloads": ["TEST"], "error": None},
        {"name": "aruco", "qr_count": 0, "duration_ms": 4.0, "payloads": [], "error": "aruco failed: bad input"},
    ]


def test_json_null_only_for_stages_that_never_ran():
    failed = FileResult.failed("c.png", "QR detection failed: boom", timings=make_timings(1.0, 2.0))
    results, stats = _finalized([failed])
    entry = build_document(results, stats)["results"][0]
    assert entry["grayscale_ms"] == 1.0
    assert entry["prepare_ms"] == 2.0
    assert entry["detect_ms"] is None
    assert entry["decode_ms"] is None
    assert entry["total_ms"] == 3.0
